import queue
import threading
import time

import pytest

from cowncurrency.boc import CownPtr, run_when, when

TIMEOUT = 10


def _read_all(*cowns):
    done = queue.Queue()
    run_when(list(cowns), lambda refs: done.put(tuple(r.value for r in refs)))
    return done.get(timeout=TIMEOUT)


def test_boc():
    c1 = CownPtr(0)
    c2 = CownPtr(0)
    c3 = CownPtr(False)
    c2_ = c2.clone()
    c3_ = c3.clone()
    finish = queue.Queue()

    @when(c1, c2)
    def _(g1, g2):
        g1.value += 1
        g2.value += 1

        @when(c3, c2)
        def _(g3, g2):
            g2.value += 1
            g3.value = True

    @when(c1, c2_, c3_)
    def _(g1, g2, g3):
        finish.put((g1.value, g2.value, g3.value))

    seen_c1, seen_c2, seen_c3 = finish.get(timeout=TIMEOUT)
    assert seen_c1 == 1
    assert seen_c2 == (2 if seen_c3 else 1)

    # The nested behaviour was scheduled before this one, so it has run by now.
    assert _read_all(c1, c2, c3) == (1, 2, True)


def test_boc_vec():
    c1 = CownPtr(0)
    c2 = CownPtr(0)
    c3 = CownPtr(False)
    c2_ = c2.clone()
    c3_ = c3.clone()
    finish = queue.Queue()

    def first(x):
        x[0].value += 1
        x[1].value += 1

        @when(c3, c2)
        def _(g3, g2):
            g2.value += 1
            g3.value = True

    run_when([c1.clone(), c2.clone()], first)

    @when(c1, c2_, c3_)
    def _(g1, g2, g3):
        finish.put((g1.value, g2.value, g3.value))

    seen_c1, seen_c2, seen_c3 = finish.get(timeout=TIMEOUT)
    assert seen_c1 == 1
    assert seen_c2 == (2 if seen_c3 else 1)

    assert _read_all(c1, c2, c3) == (1, 2, True)


def test_behaviours_on_one_cown_run_in_schedule_order():
    log = CownPtr([])
    for i in range(100):
        run_when([log], lambda refs, i=i: refs[0].value.append(i))
    done = queue.Queue()
    run_when([log], lambda refs: done.put(list(refs[0].value)))
    assert done.get(timeout=TIMEOUT) == list(range(100))


def test_mutual_exclusion_across_threads():
    counter = CownPtr(0)

    def bump(g):
        current = g.value
        time.sleep(0)
        g.value = current + 1

    def schedule_many():
        for _ in range(50):
            when(counter)(bump)

    threads = [threading.Thread(target=schedule_many) for _ in range(4)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    done = queue.Queue()
    when(counter)(lambda g: done.put(g.value))
    assert done.get(timeout=TIMEOUT) == 200


def test_overlapping_cown_sets_in_both_orders():
    a = CownPtr(0)
    b = CownPtr(0)

    def schedule(first, second):
        for _ in range(30):

            @when(first, second)
            def _(x, y):
                x.value += 1
                y.value += 1

    threads = [
        threading.Thread(target=schedule, args=(a, b)),
        threading.Thread(target=schedule, args=(b.clone(), a.clone())),
    ]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    done = queue.Queue()
    when(a, b)(lambda x, y: done.put((x.value, y.value)))
    assert done.get(timeout=TIMEOUT) == (60, 60)


def test_clone_refers_to_same_value():
    original = CownPtr("start")
    copy = original.clone()
    when(original)(lambda g: setattr(g, "value", "changed"))
    done = queue.Queue()
    when(copy)(lambda g: done.put(g.value))
    assert done.get(timeout=TIMEOUT) == "changed"


def test_empty_cown_set_still_runs():
    done = queue.Queue()
    run_when([], lambda refs: done.put(refs))
    assert done.get(timeout=TIMEOUT) == []


def test_handles_follow_given_order():
    a = CownPtr("a")
    b = CownPtr("b")
    c = CownPtr("c")
    done = queue.Queue()
    run_when([c, a, b], lambda refs: done.put([r.value for r in refs]))
    assert done.get(timeout=TIMEOUT) == ["c", "a", "b"]


def test_failing_body_releases_its_cowns():
    cown = CownPtr(5)

    @when(cown)
    def _(g):
        raise RuntimeError("boom")

    done = queue.Queue()
    when(cown)(lambda g: done.put(g.value))
    assert done.get(timeout=TIMEOUT) == 5


def test_duplicate_cown_is_rejected():
    cown = CownPtr(0)
    with pytest.raises(ValueError):
        run_when([cown, cown.clone()], lambda refs: None)


def test_non_cown_is_rejected():
    with pytest.raises(TypeError):
        run_when([CownPtr(0), 3], lambda refs: None)
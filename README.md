# cowncurrency

Small concurrency building blocks for threaded Python code, plus a little
caching HTTP server built from them. The package has no dependencies outside
the standard library.

## What is inside

- `cowncurrency.adt`: the abstract `ConcurrentMap` (`lookup`, `insert`,
  `delete`) and `ConcurrentSet` (`contains`, `insert`, `remove`) interfaces,
  and `SetAsMap`, which presents a set as a map whose values are all `None`.
  `lookup` and `delete` raise `KeyError` for a missing key.
- `cowncurrency.cache`: `Cache`. `get_or_insert_with(key, f)` runs `f` at most
  once per key while different keys are computed at the same time; concurrent
  callers for the same key wait for the one computation. If `f` raises, the
  key is left empty and a waiting caller tries again. `replace_with(key, f)`
  recomputes and stores a key's value.
- `cowncurrency.thread_pool`: `ThreadPool(size)` with `execute`, `join`,
  `panicked` and `shutdown`; it is also a context manager. A job that raises is
  recorded as a `PanicRecord`, and `shutdown` raises `ThreadPoolPanicked`
  listing them. `global_pool()` returns a shared pool of 8 workers.
- `cowncurrency.tcp`: `CancellableTcpListener(address)`, taking `"host:port"`
  or a `(host, port)` pair. `incoming()` yields accepted sockets until
  `cancel()` is called from another thread.
- `cowncurrency.handler`: `Handler`, which answers `GET /KEY HTTP/1.1` with a
  page holding the cached result for `KEY` and anything else with a 404 page;
  `parse_key` extracts the key and `expensive_computation` is the default,
  three-second computation.
- `cowncurrency.statistics`: `Report` (request id and key) and `Statistics`,
  which counts reports per key (`add_report`, `hits_for`).
- `cowncurrency.server`: `serve(listener, pool, handler)` and the `main`
  behind the `cowncurrency-server` command.
- `cowncurrency.boc`: behaviour-oriented concurrency. A `CownPtr` owns a value.
  `run_when(cowns, f)` and the `when(*cowns)` decorator schedule a body that
  runs on the shared pool once it holds every cown it named. Behaviours that
  share a cown run one at a time in the order they were scheduled.
- `cowncurrency.arc`: `Arc`, an explicitly reference-counted shared value with
  `clone`, `release`, `count`, `get`, `get_mut`, `set_unique`, `make_mut`
  (copy on write), `ptr_eq` and `try_unwrap`.
- `cowncurrency.stack`: the `Stack` interface, its `Node` push requests,
  `CasFailed`, and `TreiberStack`, a compare-and-swap stack. `pop` raises
  `IndexError` on an empty stack.
- `cowncurrency.elim_stack`: `ElimStack`, an elimination-backoff layer over
  another stack (a `TreiberStack` by default).
- `cowncurrency.growable_array`: `GrowableArray`, a tree of 1024-slot segments
  of `AtomicSlot`s that grows on demand for indices up to `2**64 - 1`.
- `cowncurrency.hazard`: hazard pointers: `HazardBag`, `Shield` (also a
  context manager), `AtomicPointer` and `ProtectionFailed`.
- `cowncurrency.retire`: `RetiredSet`, which runs a retired pointer's `free`
  callback only once no shield publishes it, collecting automatically every 64
  retirements; `retire` and `collect` use a per-thread set over the default bag.

## Examples

A cache that computes each value once:

```python
from cowncurrency.cache import Cache

cache = Cache()
value = cache.get_or_insert_with("dog", lambda key: key.upper())
assert cache.get_or_insert_with("dog", lambda key: "never called") == value
```

Running jobs on a pool:

```python
from cowncurrency.thread_pool import ThreadPool

with ThreadPool(4) as pool:
    for n in range(10):
        pool.execute(lambda n=n: print(n))
    pool.join()
```

A behaviour over a cown:

```python
from cowncurrency.boc import CownPtr, when

counter = CownPtr(0)

@when(counter)
def _(c):
    c.value += 1
```

A stack shared between threads:

```python
from cowncurrency.elim_stack import ElimStack
from cowncurrency.stack import TreiberStack

stack = ElimStack(TreiberStack())
stack.push(1)
stack.push(2)
assert stack.pop() == 2
```

Reference counting:

```python
from cowncurrency.arc import Arc

five = Arc(5)
also_five = five.clone()
assert five.count() == 2
assert five.ptr_eq(also_five)
```

Hazard pointers and deferred freeing:

```python
from cowncurrency.hazard import AtomicPointer, HazardBag, Shield
from cowncurrency.retire import RetiredSet

bag = HazardBag()
src = AtomicPointer("node")
freed = []
retired = RetiredSet(bag)

with Shield(bag) as shield:
    pointer = shield.protect(src)
    src.store(None)
    retired.retire(pointer, freed.append)
    assert retired.collect() == 0   # still protected
assert retired.collect() == 1
assert freed == ["node"]
```

## The hello server

The `cowncurrency-server` command answers `GET /KEY` requests with the result
of a slow computation for `KEY`, caching each result so that it is computed
only once. Start it with:

```
cowncurrency-server
```

It listens on `localhost:7878` unless given another `host:port` as its one
argument. Query it with `curl http://localhost:7878/KEY`. Stop it with
Ctrl-C; it then prints the number of requests it saw for each key.
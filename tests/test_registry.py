from __future__ import annotations

from concurrent.futures import ThreadPoolExecutor

from app.models.pod import ContainerSpec, PodKey, PodPhase, PodRecord
from app.services.registry import PodRegistry


def _record(namespace: str, name: str, image: str = "nginx:latest") -> PodRecord:
    return PodRecord(
        namespace=namespace,
        name=name,
        containers=(ContainerSpec(name="c1", image=image),),
        phase=PodPhase.RUNNING,
    )


def test_put_and_get() -> None:
    registry = PodRegistry()
    record = _record("default", "web")

    assert registry.put(record) is None
    assert registry.get(PodKey("default", "web")) is record
    assert registry.get(PodKey("other", "web")) is None


def test_put_replaces_wholesale() -> None:
    registry = PodRegistry()
    first = _record("default", "web", image="nginx:1.25")
    second = _record("default", "web", image="nginx:1.27")

    registry.put(first)
    previous = registry.put(second)

    assert previous is first
    assert registry.get(PodKey("default", "web")) is second
    assert len(registry) == 1


def test_delete_reports_presence() -> None:
    registry = PodRegistry()
    registry.put(_record("default", "web"))

    assert registry.delete(PodKey("default", "web")) is True
    assert registry.delete(PodKey("default", "web")) is False
    assert registry.list() == []


def test_compare_and_put_skips_stale_updates() -> None:
    registry = PodRegistry()
    original = _record("default", "web")
    newer = _record("default", "web", image="nginx:1.27")
    registry.put(original)
    registry.put(newer)

    assert registry.compare_and_put(original, _record("default", "web", image="stale")) is False
    assert registry.get(PodKey("default", "web")) is newer


def test_compare_and_put_does_not_resurrect_deleted_pod() -> None:
    registry = PodRegistry()
    original = _record("default", "web")
    registry.put(original)
    registry.delete(original.key)

    assert registry.compare_and_put(original, original.with_phase(PodPhase.UNKNOWN)) is False
    assert registry.get(original.key) is None


def test_restore_puts_back_previous_or_drops_key() -> None:
    registry = PodRegistry()
    previous = _record("default", "web")
    registry.put(previous)
    broken = _record("default", "web", image="broken")
    registry.put(broken)

    assert registry.restore(broken, previous) is True
    assert registry.get(previous.key) is previous

    assert registry.restore(previous, None) is True
    assert registry.get(previous.key) is None


def test_restore_leaves_newer_record_alone() -> None:
    registry = PodRegistry()
    in_flight = _record("default", "web", image="nginx:1.27")
    registry.put(in_flight)
    newer = _record("default", "web", image="nginx:1.28")
    registry.put(newer)

    assert registry.restore(in_flight, None) is False
    assert registry.get(newer.key) is newer

    registry.delete(newer.key)
    assert registry.restore(newer, in_flight) is False
    assert registry.get(newer.key) is None


def test_concurrent_puts_and_deletes_on_distinct_keys() -> None:
    registry = PodRegistry()
    keep = [f"keep-{i}" for i in range(200)]
    churn = [f"churn-{i}" for i in range(200)]

    def create_and_delete(name: str) -> None:
        registry.put(_record("default", name))
        registry.get(PodKey("default", name))
        registry.delete(PodKey("default", name))

    def create(name: str) -> None:
        registry.put(_record("default", name))

    with ThreadPoolExecutor(max_workers=16) as pool:
        futures = [pool.submit(create, name) for name in keep]
        futures += [pool.submit(create_and_delete, name) for name in churn]
        for future in futures:
            future.result()

    names = sorted(record.name for record in registry.list())
    assert names == sorted(keep)

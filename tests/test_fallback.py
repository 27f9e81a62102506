import pytest

from visit_engine.core.fallback import AllStrategiesFailed, FallbackChain


def returning(value):
    async def strategy():
        return value
    return strategy


def raising(error):
    async def strategy():
        raise error
    return strategy


async def test_first_success_wins():
    chain = FallbackChain().add("a", returning(1)).add("b", returning(2))

    assert await chain.run() == ("a", 1)


async def test_falls_through_to_next_strategy():
    called = []

    async def second():
        called.append("b")
        return "ok"

    chain = FallbackChain([("a", raising(RuntimeError("boom"))), ("b", second)])

    assert await chain.run() == ("b", "ok")
    assert called == ["b"]


async def test_all_failing_raises_with_last_error():
    last = ValueError("third failed")
    chain = FallbackChain()
    chain.add("a", raising(RuntimeError("first failed")))
    chain.add("b", raising(RuntimeError("second failed")))
    chain.add("c", raising(last))

    with pytest.raises(AllStrategiesFailed) as exc_info:
        await chain.run()

    assert exc_info.value.last_error is last
    assert [name for name, _ in exc_info.value.errors] == ["a", "b", "c"]
    assert str(exc_info.value) == "third failed"


async def test_empty_chain_fails():
    with pytest.raises(AllStrategiesFailed, match="No strategies configured"):
        await FallbackChain().run()


async def test_message_falls_back_to_error_type():
    with pytest.raises(AllStrategiesFailed, match="TimeoutError"):
        await FallbackChain().add("a", raising(TimeoutError())).run()


def test_len_counts_strategies():
    assert len(FallbackChain().add("a", returning(1)).add("b", returning(2))) == 2

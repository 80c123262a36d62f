"""Tests for the asyncio debouncer."""
import asyncio

from core.debounce import Debouncer


async def test__rapid_triggers__deliver_only_last_value() -> None:
    delivered: list[str] = []
    debouncer: Debouncer[str] = Debouncer(0.01, delivered.append)

    for text in ["r", "re", "rea", "react"]:
        debouncer.trigger(text)
    await debouncer.wait()

    assert delivered == ["react"]


async def test__pending__true_until_window_elapses() -> None:
    debouncer: Debouncer[int] = Debouncer(0.01, lambda _v: None)
    assert debouncer.pending is False

    debouncer.trigger(1)
    assert debouncer.pending is True

    await debouncer.wait()
    assert debouncer.pending is False


async def test__cancel__drops_pending_value() -> None:
    delivered: list[int] = []
    debouncer: Debouncer[int] = Debouncer(0.01, delivered.append)

    debouncer.trigger(1)
    debouncer.cancel()
    await asyncio.sleep(0.03)

    assert delivered == []
    assert debouncer.pending is False


async def test__separate_bursts__each_deliver_once() -> None:
    delivered: list[str] = []
    debouncer: Debouncer[str] = Debouncer(0.01, delivered.append)

    debouncer.trigger("a")
    debouncer.trigger("ab")
    await debouncer.wait()
    debouncer.trigger("abc")
    await debouncer.wait()

    assert delivered == ["ab", "abc"]


async def test__wait__without_trigger_returns_immediately() -> None:
    debouncer: Debouncer[str] = Debouncer(10, lambda _v: None)
    await asyncio.wait_for(debouncer.wait(), timeout=1)

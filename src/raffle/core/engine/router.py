from __future__ import annotations

from typing import Iterable, Protocol, Sequence

from raffle.core.events.bus import EventBus, EventHandler, Subscription


class EventComponent(Protocol):
    """
    Anything that reacts to events: the keeper, the clock driver, the
    local fulfiller, the audit log.
    """

    def subscriptions(self) -> Sequence[tuple[str, EventHandler]]:
        ...


class EngineRouter:
    """
    Wires components onto the bus in the order given.

    Tick handlers run in wiring order, which is what lets the clock move
    before the keeper polls.
    """

    def __init__(self, *, bus: EventBus) -> None:
        self._bus = bus

    def register(self, components: Iterable[EventComponent]) -> tuple[Subscription, ...]:
        wired: list[Subscription] = []
        seen: set[tuple[str, int]] = set()

        for component in components:
            name = type(component).__name__
            for event_type, handler in component.subscriptions():
                # same handler twice on one event type would double-poll upkeep
                key = (event_type, id(handler))
                if key in seen:
                    raise RuntimeError(f"duplicate subscription: component={name} event_type={event_type}")
                seen.add(key)
                wired.append(self._bus.subscribe(event_type=event_type, handler=handler))

        return tuple(wired)

from typing import Callable, Dict, List, Any

class EventBus:
    """Simple pub/sub bus; network message types are the event names."""
    def __init__(self) -> None:
        self._subs: Dict[str, List[Callable[..., None]]] = {}

    def subscribe(self, event: str, cb: Callable[..., None]) -> None:
        self._subs.setdefault(event, []).append(cb)

    def emit(self, event: str, *args: Any, **kwargs: Any) -> bool:
        """Call every subscriber; returns False when nobody listens."""
        subs = self._subs.get(event)
        if not subs:
            return False
        for cb in list(subs):
            cb(*args, **kwargs)
        return True

    def dispatch(self, msg: Dict[str, Any]) -> bool:
        """Emit a decoded wire message under its "type"."""
        return self.emit(msg.get("type", ""), msg)

"""
Synchronous session change notification.
"""

import logging
from typing import Callable, List

from multiedit.models.session import SessionChangeEvent


logger = logging.getLogger(__name__)

SessionListener = Callable[[SessionChangeEvent], None]


class SessionEventEmitter:
    """
    Delivers session change events to subscribers.
    
    Events are delivered synchronously, in emission order, to the listeners
    subscribed at the time of emission.
    """
    
    def __init__(self):
        self._listeners: List[SessionListener] = []
    
    def subscribe(self, listener: SessionListener) -> Callable[[], None]:
        """
        Register a listener.
        
        Returns:
            Callable that removes the listener again
        """
        self._listeners.append(listener)
        
        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)
        
        return unsubscribe
    
    def emit(self, event: SessionChangeEvent) -> None:
        # Iterate over a copy so listeners may unsubscribe while handling
        for listener in list(self._listeners):
            try:
                listener(event)
            except Exception as e:
                logger.error(
                    f"Session listener failed on {event.change_type.value} event: {e}",
                    extra={"session_id": event.session.id},
                    exc_info=True
                )
    
    @property
    def listener_count(self) -> int:
        return len(self._listeners)

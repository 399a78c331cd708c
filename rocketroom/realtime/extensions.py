
import uuid
import logging

logger = logging.getLogger(__name__)

class Extension(object):

    def __init__(self):
        self.listeners = {}

    def add_listener(self, func, name=None):
        name = name or uuid.uuid4()
        self.listeners[name] = func
        return name

    def remove_listener(self, name):
        return self.listeners.pop(name, None)

    def fire(self, *args, **kwargs):
        for listener_name, listener in list(self.listeners.items()):
            try:
                listener(*args, **kwargs)
            except Exception:
                logger.exception("Listener %s failed", listener_name)


class RoomMessageExtension(Extension):
    """Fires once per message carried by a stream-room-messages event.

    Messages are not filtered by room, whatever the server pushes on the
    stream is forwarded.
    """

    def __call__(self, event):
        fields = event.get("fields") or {}
        for message in fields.get("args") or []:
            self.fire(message)


class RoomEventExtension(Extension):
    """Filters stream-notify-room events down to one room and a set of event names.

    The event name of a notification is "<roomId>/<eventName>". Events of
    other rooms and other event names are dropped, the rest are fired as
    they were received.
    """

    def __init__(self, room_id, event_names=("deleteMessage", )):
        super().__init__()
        self.room_id = room_id
        self.event_names = set(event_names)

    def __call__(self, event):
        fields = event.get("fields") or {}
        room_id, _, event_name = (fields.get("eventName") or "").partition("/")
        if room_id != self.room_id:
            return
        if event_name not in self.event_names:
            return
        self.fire(event)

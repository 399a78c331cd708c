
import inspect
import logging

import tornado.gen
import tornado.queues
import tornado.ioloop

from .extensions import RoomMessageExtension, RoomEventExtension

logger = logging.getLogger(__name__)

_STOP = object()


class RoomSubscription(object):
    """Live events of one room, delivered through a bounded queue.

    New messages and deleteMessage notifications of the room are put on the
    queue. With a callback, a consumer coroutine hands them over one at a
    time; without one, the caller pulls them with get(). When the queue is
    full the newest event is dropped.

    close() stops delivery and unsubscribes this handle's streams.
    """

    def __init__(self, client, room_id, callback=None, max_queue_size=100):
        self.client = client
        self.room_id = room_id
        self.callback = callback
        self.queue = tornado.queues.Queue(maxsize=max_queue_size)
        self.dropped = 0
        self.closed = False
        self.sub_ids = []
        self._listener_names = []

        self.messages = RoomMessageExtension()
        self.messages.add_listener(self.put)
        self.events = RoomEventExtension(room_id, event_names=("deleteMessage", ))
        self.events.add_listener(self.put)

    @tornado.gen.coroutine
    def subscribe(self):
        """Subscribe to the room streams, in order

        1. stream-room-messages of the room, every message is forwarded
        2. stream-notify-room <room>/deleteMessage
        3. stream-notify-room <room>/typing, received but never forwarded
        """
        self._listener_names.append(("stream-room-messages",
            self.client.add_event_listener("stream-room-messages", self.messages)))
        sub_id = yield self.client.subscribe("stream-room-messages", self.room_id, False)
        self.sub_ids.append(sub_id)

        self._listener_names.append(("stream-notify-room",
            self.client.add_event_listener("stream-notify-room", self.events)))
        for event_name in ("deleteMessage", "typing"):
            sub_id = yield self.client.subscribe("stream-notify-room",
                "{0}/{1}".format(self.room_id, event_name), False)
            self.sub_ids.append(sub_id)

        if self.callback is not None:
            tornado.ioloop.IOLoop.current().spawn_callback(self._consume)

    def put(self, event):
        if self.closed:
            return
        try:
            self.queue.put_nowait(event)
        except tornado.queues.QueueFull:
            self.dropped += 1
            logger.warning("Event queue of room %s is full, dropped %s event(s)",
                self.room_id, self.dropped)

    def get(self, timeout=None):
        """Returns a future resolved with the next event"""
        return self.queue.get(timeout=timeout)

    @tornado.gen.coroutine
    def _consume(self):
        while True:
            event = yield self.queue.get()
            try:
                if event is _STOP:
                    break
                result = self.callback(event)
                if inspect.isawaitable(result):
                    yield result
            except Exception:
                logger.exception("Realtime callback of room %s failed", self.room_id)
            finally:
                self.queue.task_done()

    def stop(self):
        """Stop delivery without talking to the server"""
        if self.closed:
            return
        self.closed = True
        for collection, name in self._listener_names:
            self.client.remove_event_listener(collection, name)
        self._listener_names = []
        while not self.queue.empty():
            self.queue.get_nowait()
            self.queue.task_done()
        if self.callback is not None:
            self.queue.put_nowait(_STOP)

    def close(self):
        """Stop delivery and unsubscribe the room streams of this handle"""
        self.stop()
        for sub_id in self.sub_ids:
            self.client.unsubscribe(sub_id)
        self.sub_ids = []

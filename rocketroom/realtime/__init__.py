
import json
import uuid
import logging

import tornado.gen
import tornado.ioloop
import tornado.websocket
import tornado.concurrent

from ..api_wrapper import split_host

logger = logging.getLogger(__name__)

DDP_VERSION = "1"


class DDPError(Exception):
    pass


class DDPClient(object):
    """A small DDP client on top of tornado.websocket

    Only what a room subscription needs is here: the connect handshake,
    method calls (login/resume), sub/unsub and dispatching of collection
    events to listeners. There is no reconnection, when the socket goes away
    every pending call fails with DDPError and the listeners stop receiving.
    """

    def __init__(self, host, websocket_connect=None):
        protocol, host = split_host(host, secure_protocol="wss", insecure_protocol="ws")
        self.url = "{protocol}://{host}/websocket".format(protocol=protocol, host=host)
        self.websocket_connect = websocket_connect or tornado.websocket.websocket_connect
        self.connection = None
        self.session_id = None
        self.listeners = {}
        self.subscriptions = {}
        self._pending = {}

    @property
    def connected(self):
        return self.connection is not None

    @tornado.gen.coroutine
    def connect(self):
        """Open the websocket and do the DDP connect handshake"""
        if self.connection is not None:
            return self.session_id
        connection = yield self.websocket_connect(self.url)
        self.connection = connection
        self._send({ "msg": "connect", "version": DDP_VERSION, "support": [ DDP_VERSION ] })
        while True:
            msg = yield connection.read_message()
            if msg is None:
                self.connection = None
                raise DDPError("connection closed during handshake")
            msg = json.loads(msg)
            if msg.get("msg") == "connected":
                self.session_id = msg.get("session")
                break
            if msg.get("msg") == "failed":
                self.disconnect()
                raise DDPError("server does not support DDP version {0}, wants {1}".format(
                    DDP_VERSION, msg.get("version")))
            # server_id and other greetings

        logger.info("Connected to %s, session %s", self.url, self.session_id)
        tornado.ioloop.IOLoop.current().spawn_callback(self.websocket_watch, connection)
        return self.session_id

    def call(self, method, *params):
        """Call a DDP method, returns a future resolved with the result"""
        msg_id = uuid.uuid4().hex
        future = self._expect(msg_id)
        self._send({ "msg": "method", "method": method, "params": list(params), "id": msg_id })
        return future

    def resume(self, token):
        """Authenticate the connection with an existing auth token"""
        return self.call("login", { "resume": token })

    @tornado.gen.coroutine
    def subscribe(self, name, *params):
        """Subscribe to a publication, returns the subscription id once ready"""
        sub_id = uuid.uuid4().hex
        future = self._expect(sub_id)
        self.subscriptions[sub_id] = (name, params)
        self._send({ "msg": "sub", "id": sub_id, "name": name, "params": list(params) })
        try:
            yield future
        except DDPError:
            self.subscriptions.pop(sub_id, None)
            raise
        logger.debug("Subscribed to %s %s (%s)", name, params, sub_id)
        return sub_id

    def unsubscribe(self, sub_id):
        if self.subscriptions.pop(sub_id, None) is None:
            return False
        if self.connection is not None:
            self._send({ "msg": "unsub", "id": sub_id })
        return True

    def unsubscribe_all(self):
        for sub_id in list(self.subscriptions.keys()):
            self.unsubscribe(sub_id)

    def disconnect(self):
        connection, self.connection = self.connection, None
        self.session_id = None
        if connection is not None:
            connection.close()
            logger.info("Disconnected from %s", self.url)
        self._fail_pending(DDPError("connection closed"))

    @tornado.gen.coroutine
    def websocket_watch(self, connection):
        """
        Read and dispatch frames until the connection closes
        """
        while connection is self.connection:
            msg = yield connection.read_message()
            if msg is None:
                if connection is self.connection:
                    logger.info("Connection to %s closed by server", self.url)
                    self.connection = None
                    self._fail_pending(DDPError("connection closed"))
                break
            try:
                msg = json.loads(msg)
            except ValueError:
                logger.warning("Ignoring invalid DDP frame: %r", msg)
                continue
            self._dispatch(msg)

    def _dispatch(self, msg):
        kind = msg.get("msg")
        if kind == "ping":
            pong = { "msg": "pong" }
            if "id" in msg:
                pong["id"] = msg["id"]
            self._send(pong)
        elif kind == "result":
            future = self._pending.pop(msg.get("id"), None)
            if future is None or future.done():
                return
            if msg.get("error") is not None:
                error = msg["error"]
                future.set_exception(DDPError(error.get("reason") or error.get("message") or error.get("error")))
            else:
                future.set_result(msg.get("result"))
        elif kind == "ready":
            for sub_id in msg.get("subs", []):
                future = self._pending.pop(sub_id, None)
                if future is not None and not future.done():
                    future.set_result(sub_id)
        elif kind == "nosub":
            sub_id = msg.get("id")
            self.subscriptions.pop(sub_id, None)
            future = self._pending.pop(sub_id, None)
            error = msg.get("error") or {}
            if future is not None and not future.done():
                future.set_exception(DDPError(error.get("reason") or "subscription refused"))
            else:
                logger.info("Subscription %s stopped by server", sub_id)
        elif kind in ("added", "changed", "removed"):
            self._fire_event(None, msg)
            self._fire_event(msg.get("collection"), msg)
        else:
            logger.debug("Unhandled DDP frame: %s", msg)

    def _expect(self, msg_id):
        if self.connection is None:
            raise DDPError("not connected")
        future = tornado.concurrent.Future()
        self._pending[msg_id] = future
        return future

    def _fail_pending(self, error):
        pending, self._pending = self._pending, {}
        for future in pending.values():
            if not future.done():
                future.set_exception(error)

    def _send(self, msg):
        logger.debug("> %s", msg)
        self.connection.write_message(json.dumps(msg))

    def _fire_event(self, collection, event):
        handlers = self.listeners.get(collection)
        if handlers:
            for handler in list(handlers.values()):
                handler(event)

    def add_event_listener(self, collection, func, name=None):
        """Listen to added/changed/removed events of a collection

        collection None listens to every collection.
        """
        name = name or uuid.uuid4()
        if collection not in self.listeners:
            self.listeners[collection] = {}

        self.listeners[collection][name] = func
        return name

    def remove_event_listener(self, collection, name):
        if collection not in self.listeners:
            return None
        if name not in self.listeners[collection]:
            return None
        return self.listeners[collection].pop(name)


from .subscription import RoomSubscription

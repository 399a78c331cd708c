
import io
import json

import tornado.queues
import tornado.httpclient


class FakeHTTPClient(object):
    """Stands in for AsyncHTTPClient, answers with canned responses in order"""

    def __init__(self):
        self.requests = []
        self.responses = []

    def respond(self, body, code=200):
        self.responses.append((code, body))

    def fail(self, error):
        self.responses.append(error)

    async def fetch(self, request, raise_error=True):
        self.requests.append(request)
        item = self.responses.pop(0)
        if isinstance(item, Exception):
            raise item
        code, body = item
        if not isinstance(body, bytes):
            body = json.dumps(body).encode("utf-8")
        return tornado.httpclient.HTTPResponse(request, code, buffer=io.BytesIO(body))

    def json_body(self, index):
        return json.loads(self.requests[index].body.decode("utf-8"))


class FakeConnection(object):
    """Stands in for a websocket connection to a DDP server

    Answers connect, login and sub frames the way the server does. Subs whose
    first param is in `refuse` get a nosub.
    """

    def __init__(self, refuse=(), login_error=None):
        self.frames = tornado.queues.Queue()
        self.sent = []
        self.closed = False
        self.refuse = set(refuse)
        self.login_error = login_error

    def push(self, msg):
        self.frames.put_nowait(json.dumps(msg))

    def write_message(self, data):
        msg = json.loads(data)
        self.sent.append(msg)
        kind = msg["msg"]
        if kind == "connect":
            self.push({ "server_id": "0" })
            self.push({ "msg": "connected", "session": "session-1" })
        elif kind == "method":
            if self.login_error is not None:
                self.push({ "msg": "result", "id": msg["id"],
                    "error": { "error": 403, "reason": self.login_error } })
            else:
                self.push({ "msg": "result", "id": msg["id"], "result": { "id": "uid" } })
        elif kind == "sub":
            if msg["params"][0] in self.refuse:
                self.push({ "msg": "nosub", "id": msg["id"],
                    "error": { "error": "not-allowed", "reason": "Not allowed" } })
            else:
                self.push({ "msg": "ready", "subs": [ msg["id"] ] })

    def read_message(self):
        return self.frames.get()

    def close(self):
        if not self.closed:
            self.closed = True
            self.frames.put_nowait(None)

    def sent_of(self, kind):
        return [ m for m in self.sent if m.get("msg") == kind ]


class FakeWebSocket(object):

    def __init__(self, connection):
        self.connection = connection
        self.urls = []

    async def __call__(self, url):
        self.urls.append(url)
        return self.connection


def notify_room(event_name, args=None):
    return {
        "msg": "changed",
        "collection": "stream-notify-room",
        "id": "id",
        "fields": { "eventName": event_name, "args": args or [ { "_id": "msg-1" } ] },
    }


def room_message(room_id, message_id, text):
    return {
        "msg": "changed",
        "collection": "stream-room-messages",
        "id": "id",
        "fields": {
            "eventName": room_id,
            "args": [ { "_id": message_id, "rid": room_id, "msg": text } ],
        },
    }

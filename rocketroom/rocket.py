
import os
import re
import types
import inspect
import logging

import tornado.gen

from . import auth, users, channels, chat, rooms
from .api_wrapper import RestAPIParserException
from .session import Session, RC_USER_TOKEN_KEY, RC_USER_ID_KEY
from .realtime import DDPClient, RoomSubscription

logger = logging.getLogger(__name__)

USERNAME_REGEX = re.compile(r"[0-9a-zA-Z\-_.]+")
COULD_NOT_SAVE_IDENTITY = "error-could-not-save-identity"


def normalize_username(name):
    """Turn a display name into a username candidate, "Jane  Doe" -> "jane.doe" """
    return re.sub(r"\s+", ".", name).lower()


def is_valid_username(name):
    return USERNAME_REGEX.fullmatch(name) is not None


def read_first_file(files):
    """Read the first of the selected files

    files                   a sequence of paths or binary file objects

    return                  (filename, content)
    """
    if not files:
        raise ValueError("no file selected")
    selected = files[0]
    if isinstance(selected, (str, os.PathLike)):
        with open(selected, "rb") as f:
            return os.path.basename(os.fspath(selected)), f.read()
    content = selected.read()
    return os.path.basename(getattr(selected, "name", None) or "file"), content


class RocketChat(object):
    """All the REST endpoints of one host, grouped like the server groups them.

    room_id, if given, is bound to every endpoint that takes the room as
    roomId or rid.
    """

    def __init__(self, host, session, room_id=None, http_client=None):
        partials = {} if room_id is None else { "roomId": room_id, "rid": room_id }
        self.api = types.SimpleNamespace()
        self.api.auth = auth.AuthAPI(host, session, http_client=http_client)
        self.api.users = users.UsersAPI(host, session, http_client=http_client)
        self.api.channels = channels.ChannelsAPI(host, session, http_client=http_client, **partials)
        self.api.chat = chat.ChatAPI(host, session, http_client=http_client, **partials)
        self.api.rooms = rooms.RoomsAPI(host, session, http_client=http_client, **partials)


class RocketChatInstance(object):
    """Client for a single room of a Rocket.Chat server.

    Every REST method returns a future resolved with the parsed json body of
    the response. Errors are logged and the future resolves with None
    instead, callers only ever see the missing payload. pin_message is the
    one exception, it resolves with {"error": message}.

    The credentials live in `session`; give each instance its own session
    unless they are meant to share one login.
    """

    def __init__(self, host, rid, session=None, http_client=None, websocket_connect=None):
        self.host = host
        self.rid = rid
        self.session = session if session is not None else Session()
        self.rocket = RocketChat(host, self.session, room_id=rid, http_client=http_client)
        self.api = self.rocket.api
        self.rc_client = DDPClient(host, websocket_connect=websocket_connect)
        self.subscriptions = []

    def get_credentials(self):
        return self.session.get_credentials()

    def set_credentials(self, credentials):
        self.session.set_credentials(credentials)

    @tornado.gen.coroutine
    def _call(self, name, api, **params):
        try:
            response = yield api(**params)
            return response.json_body
        except Exception as e:
            logger.error("%s failed: %s", name, e)
            return None

    ########## auth ##########

    @tornado.gen.coroutine
    def login_via_identity_provider(self, sign_in, service_name="google", expires_in=3600):
        """Exchange identity provider tokens for a session

        sign_in             function (or coroutine function) that signs in with the
                            identity provider and returns {"access_token", "id_token"}

        return              {"status": "success", "me": <profile>} or None
        """
        try:
            tokens = sign_in()
            if inspect.isawaitable(tokens):
                tokens = yield tokens
            response = yield self.api.auth.login(serviceName=service_name,
                accessToken=tokens["access_token"], idToken=tokens.get("id_token"),
                expiresIn=expires_in)
            body = response.json_body
            if body.get("status") != "success":
                logger.warning("Login refused: %s", body.get("message") or body.get("error"))
                return None

            data = body["data"]
            self.set_credentials({
                RC_USER_TOKEN_KEY: data["authToken"],
                RC_USER_ID_KEY: data["userId"],
            })
            me = data.get("me") or {}
            if not me.get("username"):
                yield self.update_user_username(data["userId"], me.get("name") or "")
            return { "status": body["status"], "me": me }
        except Exception as e:
            logger.error("login failed: %s", e)
            return None

    @tornado.gen.coroutine
    def logout(self):
        """Log out and clear the credentials

        The credentials are cleared whenever the server answered, whatever the
        body. Only a request that never got a response keeps them.
        """
        try:
            response = yield self.api.auth.logout()
            self.set_credentials({})
            return response.json_body
        except RestAPIParserException as e:
            self.set_credentials({})
            logger.error("logout failed: %s", e)
            return None
        except Exception as e:
            logger.error("logout failed: %s", e)
            return None

    def me(self):
        return self._call("me", self.api.auth.me)

    ########## username ##########

    @tornado.gen.coroutine
    def update_username_through_suggestion(self, user_id):
        try:
            suggestion = yield self.api.users.get_username_suggestion()
            if not suggestion.data.success:
                logger.warning("No username suggestion for %s: %s", user_id, suggestion.data.error)
                return None
            response = yield self.api.users.update(userId=user_id,
                data={ "username": suggestion.data.result })
            return response.json_body
        except Exception as e:
            logger.error("users.getUsernameSuggestion failed: %s", e)
            return None

    @tornado.gen.coroutine
    def update_user_username(self, user_id, name):
        """Give the account a username made from its display name

        If the name is not a valid username, or the server could not save it
        (usually taken), the server's suggestion is used instead.
        """
        username = normalize_username(name)
        if not is_valid_username(username):
            result = yield self.update_username_through_suggestion(user_id)
            return result

        try:
            response = yield self.api.users.update(userId=user_id, data={ "username": username })
        except Exception as e:
            logger.error("users.update failed: %s", e)
            return None

        if not response.data.success and response.data.error_type == COULD_NOT_SAVE_IDENTITY:
            result = yield self.update_username_through_suggestion(user_id)
            return result
        return response.json_body

    ########## room ##########

    def channel_info(self):
        return self._call("channels.info", self.api.channels.info)

    def get_messages(self, anonymous_mode=False, count=None, offset=None):
        if anonymous_mode:
            return self._call("channels.anonymousread", self.api.channels.anonymous_read,
                count=count, offset=offset)
        return self._call("channels.messages", self.api.channels.messages,
            count=count, offset=offset)

    def get_channel_members(self, count=None, offset=None):
        return self._call("channels.members", self.api.channels.members,
            count=count, offset=offset)

    ########## messages ##########

    def send_message(self, message):
        return self._call("chat.sendMessage", self.api.chat.send_message,
            message={ "rid": self.rid, "msg": message })

    def delete_message(self, msg_id):
        return self._call("chat.delete", self.api.chat.delete, msgId=msg_id, asUser=True)

    def update_message(self, msg_id, text):
        return self._call("chat.update", self.api.chat.update, msgId=msg_id, text=text)

    def star_message(self, mid):
        return self._call("chat.starMessage", self.api.chat.star_message, messageId=mid)

    def unstar_message(self, mid):
        return self._call("chat.unStarMessage", self.api.chat.unstar_message, messageId=mid)

    def get_starred_messages(self):
        return self._call("chat.getStarredMessages", self.api.chat.get_starred_messages)

    def get_pinned_messages(self):
        return self._call("chat.getPinnedMessages", self.api.chat.get_pinned_messages)

    @tornado.gen.coroutine
    def pin_message(self, mid):
        try:
            response = yield self.api.chat.pin_message(messageId=mid)
            return response.json_body
        except Exception as e:
            return { "error": str(e) }

    def unpin_message(self, mid):
        return self._call("chat.unPinMessage", self.api.chat.unpin_message, messageId=mid)

    def react_to_message(self, emoji, message_id, should_react):
        return self._call("chat.react", self.api.chat.react,
            messageId=message_id, emoji=emoji, shouldReact=bool(should_react))

    @tornado.gen.coroutine
    def send_attachment(self, files, msg=None, description=None):
        """Upload the first of the selected files to the room

        Resolves once the file is read and the upload response parsed.
        """
        try:
            filename, content = read_first_file(files)
            response = yield self.api.rooms.upload(file=(filename, content),
                msg=msg, description=description)
            return response.json_body
        except Exception as e:
            logger.error("rooms.upload failed: %s", e)
            return None

    ########## realtime ##########

    @tornado.gen.coroutine
    def realtime(self, callback=None, max_queue_size=100):
        """Stream new messages and message deletions of the room

        callback            called with each new message (the message dict) and each
                            deleteMessage notification (the DDP frame, unmodified).
                            Without a callback, pull events from the returned handle.

        return              a RoomSubscription, or None if any step failed. A failed
                            step tears the connection down, there is no retry.
        """
        subscription = RoomSubscription(self.rc_client, self.rid, callback=callback,
            max_queue_size=max_queue_size)
        try:
            yield self.rc_client.connect()
            yield self.rc_client.resume(self.session.token)
            yield subscription.subscribe()
        except Exception as e:
            logger.error("Realtime subscription of room %s failed: %s", self.rid, e)
            subscription.stop()
            yield self.close()
            return None
        self.subscriptions.append(subscription)
        return subscription

    @tornado.gen.coroutine
    def close(self):
        """Unsubscribe everything and disconnect the realtime connection"""
        for subscription in self.subscriptions:
            subscription.stop()
        self.subscriptions = []
        self.rc_client.unsubscribe_all()
        self.rc_client.disconnect()

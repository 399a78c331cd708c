"""
Command line access to one room.

    rocketroom --host=https://chat.example.com --room=GENERAL \
        --credentials_file=~/.rocketroom.json history

Commands: info, history, members, starred, pinned, me, send <text>, watch, logout

Options can also come from a config file given with --config (python syntax,
one assignment per option, see tornado.options.parse_config_file).
"""
import os
import sys
import json
import logging

import tornado.gen
import tornado.ioloop
import tornado.options
from tornado.options import define, options

from .session import Session, RC_USER_TOKEN_KEY, RC_USER_ID_KEY
from .rocket import RocketChatInstance

logger = logging.getLogger(__name__)

define("config", type=str, help="path to a config file",
    callback=lambda path: tornado.options.parse_config_file(path, final=False))
define("host", default="http://localhost:3000", help="chat server url")
define("room", default="GENERAL", help="room id")
define("token", default=None, help="auth token, overrides the credentials file")
define("user_id", default=None, help="user id, overrides the credentials file")
define("credentials_file", default=None, help="json file holding the session credentials")
define("anonymous", default=False, help="read history in anonymous mode")
define("queue_size", default=100, help="max number of undelivered realtime events")


def _print(result):
    print(json.dumps(result, indent=2, sort_keys=True))


def build_instance():
    path = os.path.expanduser(options.credentials_file) if options.credentials_file else None
    session = Session(path=path)
    if options.token or options.user_id:
        credentials = session.get_credentials()
        credentials[RC_USER_TOKEN_KEY] = options.token or credentials[RC_USER_TOKEN_KEY]
        credentials[RC_USER_ID_KEY] = options.user_id or credentials[RC_USER_ID_KEY]
        session.set_credentials(credentials)
    return RocketChatInstance(options.host, options.room, session=session)


@tornado.gen.coroutine
def watch(instance):
    subscription = yield instance.realtime(callback=_print, max_queue_size=options.queue_size)
    if subscription is None:
        return 1
    logger.info("Watching room %s, ctrl-c to stop", instance.rid)
    try:
        while instance.rc_client.connected:
            yield tornado.gen.sleep(1)
        logger.info("Connection lost")
    finally:
        yield instance.close()
    return 0


@tornado.gen.coroutine
def run(command, args):
    instance = build_instance()
    if command == "watch":
        code = yield watch(instance)
        return code

    if command == "send":
        if not args:
            logger.error("send needs a message")
            return 2
        result = yield instance.send_message(" ".join(args))
    elif command == "info":
        result = yield instance.channel_info()
    elif command == "history":
        result = yield instance.get_messages(anonymous_mode=options.anonymous)
    elif command == "members":
        result = yield instance.get_channel_members()
    elif command == "starred":
        result = yield instance.get_starred_messages()
    elif command == "pinned":
        result = yield instance.get_pinned_messages()
    elif command == "me":
        result = yield instance.me()
    elif command == "logout":
        result = yield instance.logout()
    else:
        logger.error("Unknown command %s", command)
        return 2

    if result is None:
        return 1
    _print(result)
    return 0


def main(argv=None):
    args = tornado.options.parse_command_line(argv)
    command, args = (args[0], args[1:]) if args else ("info", [])
    try:
        code = tornado.ioloop.IOLoop.current().run_sync(lambda: run(command, args))
    except KeyboardInterrupt:
        code = 0
    sys.exit(code)


if __name__ == "__main__":
    main()

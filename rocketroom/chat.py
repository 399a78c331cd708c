
from . import _GenericAPI

_API = {
    "send_message": {
        "url": "/api/v1/chat.sendMessage",
        "method": "POST",
        "params": {
            # {"rid": ..., "msg": ...}
            "message": { "type": "dict", "is_required": True },
        },
    },
    "delete": {
        "url": "/api/v1/chat.delete",
        "method": "POST",
        "params": {
            "roomId": { "type": "string", "is_required": True },
            "msgId": { "type": "string", "is_required": True },
            "asUser": { "type": "bool" },
        },
    },
    "update": {
        "url": "/api/v1/chat.update",
        "method": "POST",
        "params": {
            "roomId": { "type": "string", "is_required": True },
            "msgId": { "type": "string", "is_required": True },
            "text": { "type": "string", "is_required": True },
        },
    },
    "star_message": {
        "url": "/api/v1/chat.starMessage",
        "method": "POST",
        "params": {
            "messageId": { "type": "string", "is_required": True },
        },
    },
    "unstar_message": {
        "url": "/api/v1/chat.unStarMessage",
        "method": "POST",
        "params": {
            "messageId": { "type": "string", "is_required": True },
        },
    },
    "get_starred_messages": {
        "url": "/api/v1/chat.getStarredMessages",
        "method": "GET",
        "params": {
            "roomId": { "type": "string", "is_required": True },
        },
    },
    "get_pinned_messages": {
        "url": "/api/v1/chat.getPinnedMessages",
        "method": "GET",
        "params": {
            "roomId": { "type": "string", "is_required": True },
        },
    },
    "pin_message": {
        "url": "/api/v1/chat.pinMessage",
        "method": "POST",
        "params": {
            "messageId": { "type": "string", "is_required": True },
        },
    },
    "unpin_message": {
        "url": "/api/v1/chat.unPinMessage",
        "method": "POST",
        "params": {
            "messageId": { "type": "string", "is_required": True },
        },
    },
    "react": {
        "url": "/api/v1/chat.react",
        "method": "POST",
        "params": {
            "messageId": { "type": "string", "is_required": True },
            "emoji": { "type": "string", "is_required": True },
            "shouldReact": { "type": "bool" },
        },
    },
}

class ChatAPI(_GenericAPI):

    def __init__(self, host, session, http_client=None, **partials):
        super().__init__(host, session, _API, http_client=http_client, **partials)


from . import _GenericAPI

_API = {
    "info": {
        "url": "/api/v1/channels.info",
        "method": "GET",
        "params": {
            "roomId": { "type": "string", "is_required": True },
        },
    },
    "messages": {
        "url": "/api/v1/channels.messages",
        "method": "GET",
        "params": {
            "roomId": { "type": "string", "is_required": True },
            "count": { "type": "int" },
            "offset": { "type": "int" },
        },
    },
    "anonymous_read": {
        "url": "/api/v1/channels.anonymousread",
        "method": "GET",
        "params": {
            "roomId": { "type": "string", "is_required": True },
            "count": { "type": "int" },
            "offset": { "type": "int" },
        },
    },
    "members": {
        "url": "/api/v1/channels.members",
        "method": "GET",
        "params": {
            "roomId": { "type": "string", "is_required": True },
            "count": { "type": "int" },
            "offset": { "type": "int" },
        },
    },
}

class ChannelsAPI(_GenericAPI):

    def __init__(self, host, session, http_client=None, **partials):
        super().__init__(host, session, _API, http_client=http_client, **partials)

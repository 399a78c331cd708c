
from . import _GenericAPI

_API = {
    "get_username_suggestion": {
        "url": "/api/v1/users.getUsernameSuggestion",
        "method": "GET",
        "params": {},
        "parse_data": ("result", )
    },
    "update": {
        "url": "/api/v1/users.update",
        "method": "POST",
        "params": {
            "userId": { "type": "string", "is_required": True },
            # {"username": ..., "name": ..., ...}
            "data": { "type": "dict", "is_required": True },
        },
        "parse_data": ("user", )
    },
}

class UsersAPI(_GenericAPI):

    def __init__(self, host, session, http_client=None, **partials):
        super().__init__(host, session, _API, http_client=http_client, **partials)

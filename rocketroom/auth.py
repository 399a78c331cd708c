
from . import _GenericAPI

_API = {
    "login": {
        "url": "/api/v1/login",
        "method": "POST",
        "authenticated": False,
        "params": {
            "serviceName": { "type": "string", "is_required": True },
            "accessToken": { "type": "string", "is_required": True },
            "idToken": { "type": "string" },
            "expiresIn": { "type": "int", "default": 3600 },
        },
    },
    "logout": {
        "url": "/api/v1/logout",
        "method": "POST",
        "params": {},
    },
    "me": {
        "url": "/api/v1/me",
        "method": "GET",
        "params": {},
    },
}

class AuthAPI(_GenericAPI):

    def __init__(self, host, session, http_client=None, **partials):
        super().__init__(host, session, _API, http_client=http_client, **partials)


from . import _GenericAPI
from .api_wrapper import RestAPI

_API = {
    "upload": {
        "url": "/api/v1/rooms.upload/{rid}",
        "method": "POST",
        "request_body_type": RestAPI.MULTIPART,
        "params": {
            "file": { "type": "file", "is_required": True },
            "msg": { "type": "string" },
            "description": { "type": "string" },
        },
    },
}

class RoomsAPI(_GenericAPI):

    def __init__(self, host, session, http_client=None, **partials):
        super().__init__(host, session, _API, http_client=http_client, **partials)


import types
import functools

from .api_wrapper import RestAPI, split_host, parse_json_body


class _GenericAPI(object):
    """Turns a dict of endpoint definitions into methods on this object.

    Besides the RestAPI config keys, a definition may carry
    parse_data          keys of the json body to copy onto response.data
    authenticated       send the session auth headers (default: True)

    Any extra keyword argument (eg. roomId) is bound to every endpoint that
    accepts it.
    """

    def __init__(self, host, session, api_definitions, http_client=None, **partials):
        self.session = session
        self.http_client = http_client
        protocol, host = split_host(host)

        for function_name, definition in api_definitions.items():
            definition = dict(definition)
            definition["host"] = host if "host" not in definition else definition["host"]
            definition["protocol"] = protocol if "protocol" not in definition else definition["protocol"]
            parse_data = definition.pop("parse_data", None)
            authenticated = definition.pop("authenticated", True)
            api = (RestAPI.from_config(definition)
                .set(decode="utf-8")
                .set_httpclient(self.http_client)
                .add_headers({ "Content-Type": "application/json" }))
            if authenticated:
                api.add_header_provider(self.session.auth_headers)
            api.add_post_response_hook(hooks=functools.partial(
                self._post_response, parse_data=parse_data))
            bound = { k: v for k, v in partials.items() if api.accepts(k) }
            if bound:
                api.partial(**bound)
            setattr(self, function_name, api)

    def _post_response(self, response, parse_data=None):
        parse_json_body(response)
        if parse_data is not None:
            body = response.json_body if isinstance(response.json_body, dict) else {}
            response.data = types.SimpleNamespace()
            response.data.success = bool(body.get("success"))
            response.data.error = body.get("error")
            response.data.error_type = body.get("errorType")
            if response.data.success:
                for key in parse_data:
                    setattr(response.data, key, body.get(key))


from .session import Session, RC_USER_TOKEN_KEY, RC_USER_ID_KEY
from .rocket import RocketChat, RocketChatInstance, normalize_username

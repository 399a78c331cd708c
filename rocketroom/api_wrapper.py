"""
Api wrapper is a tornado wrapper that allows developers to describe a rest api
in the form of a dictionary and call it like a method.

Every call is a single fetch. There is no retry and no response cache, the
remote service decides what to do with duplicates and failures.

Some notes:

Params of POST calls are sent as a json object by default. Nested objects
are described with the "dict" type and passed as a python dict, the json
encoder takes care of quoting.

Headers that change between calls (auth tokens) are added through header
providers, callables that are evaluated every time a request is created.
"""
import os
import re
import json
import uuid
import logging
import mimetypes

import tornado.gen
import tornado.escape
import tornado.httputil
import tornado.httpclient

logger = logging.getLogger(__name__)

#################### Exceptions #####################
class RestAPIParserException(Exception):
    pass


class RestAPIRuntimeException(Exception):
    pass

#################### Utility functions #####################

def split_host(host, secure_protocol="https", insecure_protocol="http"):
    """Split a host url into (protocol, host)

    host                    "http://chat.local:3000", "chat.example.com", "https://example.com/chat"
    secure_protocol         protocol returned unless the host explicitly says http://
    insecure_protocol       protocol returned for http:// hosts

    Only an explicit http:// selects the insecure protocol.
    """
    match = re.match(r"^(?P<scheme>[a-zA-Z][a-zA-Z0-9+.-]*)://(?P<rest>.*)$", host)
    if match is None:
        rest = host
        insecure = False
    else:
        rest = match.group("rest")
        insecure = match.group("scheme").lower() == "http"
    rest = rest.rstrip("/")
    return (insecure_protocol if insecure else secure_protocol), rest


def encode_multipart(fields, files, boundary=None):
    """Encode fields and files as multipart/form-data

    fields                  key/value pair of plain form fields
    files                   key/(filename, content) pair, content is bytes

    return                  (content_type, body)
    """
    boundary = boundary or uuid.uuid4().hex
    delimiter = "--{0}".format(boundary).encode("utf-8")
    lines = []
    for key, value in fields.items():
        lines.append(delimiter)
        lines.append('Content-Disposition: form-data; name="{0}"'.format(key).encode("utf-8"))
        lines.append(b"")
        lines.append(str(value).encode("utf-8"))
    for key, (filename, content) in files.items():
        filename = os.path.basename(filename).replace('"', "%22")
        mime_type = mimetypes.guess_type(filename)[0] or "application/octet-stream"
        lines.append(delimiter)
        lines.append('Content-Disposition: form-data; name="{0}"; filename="{1}"'.format(
            key, filename).encode("utf-8"))
        lines.append("Content-Type: {0}".format(mime_type).encode("utf-8"))
        lines.append(b"")
        lines.append(content if isinstance(content, bytes) else content.encode("utf-8"))
    lines.append(delimiter + b"--")
    lines.append(b"")
    return "multipart/form-data; boundary={0}".format(boundary), b"\r\n".join(lines)

#################### Main object #################
class RestAPI(object):
    """
    Usage:
    from rocketroom.api_wrapper import RestAPI

    room_info_config = {
        "protocol": RestAPI.HTTPS,
        "url": "/api/v1/channels.info",
        "params": { "roomId" : { "type": "string", "is_required": True } },
        "method": RestAPI.GET,
        "host": "chat.example.com",
        "headers": {},
    }

    room_info = RestAPI.from_config(room_info_config)

    response = yield room_info(roomId="GENERAL")

    do not use the constructor of RestAPI directly
    """

    ##### Commonly used constants #######
    HTTP="http"
    HTTPS="https"

    GET="GET"
    POST="POST"

    JSON="json"
    MULTIPART="multipart"

    URL_PARAMS_REGEX = re.compile(r"(\{.*?\})")
    REQUEST_CONTENT_TYPE = (JSON, MULTIPART)

    TYPE_STRING = "string"
    TYPE_INT = "int"
    TYPE_DICT = "dict"
    TYPE_BOOL = "bool"
    TYPE_FILE = "file"
    PARAM_TYPES = (TYPE_STRING, TYPE_INT, TYPE_DICT, TYPE_BOOL, TYPE_FILE)

    def __init__(self):
        self.http_client = None
        self.protocol = RestAPI.HTTP
        self.host = None
        self.url = None
        self.method = RestAPI.GET
        self.request_body_type = None
        self.url_params = []
        self.params = {}
        self.post_response_hooks = []
        self.header_providers = []
        self.headers = {}
        self._default_values = {}
        self._partial_values = {}
        self.decode = None

    @classmethod
    def from_config(cls, config):
        api = RestAPI()
        api.protocol = config.get("protocol") if "protocol" in config else RestAPI.HTTP
        api.host = config.get("host") if "host" in config else None
        api.url = config.get("url")
        api.method = config.get("method") if "method" in config else RestAPI.GET
        if api.method == RestAPI.POST:
            api.request_body_type = (config.get("request_body_type") if
                    "request_body_type" in config else RestAPI.JSON)
            if api.request_body_type not in RestAPI.REQUEST_CONTENT_TYPE:
                raise RestAPIParserException("Invalid request_body_type {0}".format(
                    api.request_body_type))
        else:
            api.request_body_type = None
        api.url_params = RestAPI.URL_PARAMS_REGEX.findall(api.url)
        api.url_params = [ a[1:-1] for a in api.url_params ]

        if "headers" in config:
            api.headers.update(config["headers"])
        api.params = config.get("params") if "params" in config else {}
        # set up basic structure
        for key, param in api.params.items():
            if param.get("type") is not None and param["type"] not in RestAPI.PARAM_TYPES:
                raise RestAPIParserException("Invalid type {0} for param {1}".format(
                    param["type"], key))
            if "default" in param:
                api._default_values[key] = param["default"]
        return api

    def set(self, **params):
        """Set the other stuffs in one shot

        The stuffs that can be set here are
        decode

        decode                  what encoding to decode the response to. (default None)
        """
        if "decode" in params:
            self.decode = params["decode"]
        return self

    def copy(self):
        """Make a copy of this api
        """
        api = RestAPI()
        api.protocol = self.protocol
        api.url = self.url
        api.method = self.method
        api.request_body_type = self.request_body_type
        api.url_params = self.url_params
        api.params = self.params
        api.decode = self.decode

        # mutable values
        api._default_values.update(self._default_values)
        api._partial_values.update(self._partial_values)

        api.http_client = self.http_client
        api.host = self.host
        api.headers.update(self.headers)
        api.header_providers = [ p for p in self.header_providers ]
        api.post_response_hooks = [ h for h in self.post_response_hooks ]
        return api

    def add_headers(self, headers, create_new=False):
        """Add default headers to the api

        headers                 key/value pair for headers
        create_new              if True a new RestAPI object is returned,
                                else the current one is modified (default: False)

        return                  instance of RestAPI
        """
        copy = self.copy() if create_new else self
        copy.headers.update(headers)
        return copy

    def add_header_provider(self, provider, create_new=False):
        """Add a function that returns headers for every request

        provider                a function that takes no argument and returns a dict.
                                It is called each time a request is created, so the
                                headers always reflect the current state (eg. auth token).
        create_new              if True a new RestAPI object is returned,
                                else the current one is modified (default: False)
        """
        copy = self.copy() if create_new else self
        copy.header_providers.append(provider)
        return copy

    def set_httpclient(self, http_client, create_new=False):
        """Set a default AsyncHTTPClient to use

        http_client             a tornado.httpclient.AsyncHTTPClient instance, or anything
                                with a compatible fetch method. None uses the shared client.
        create_new              if True a new RestAPI object is returned,
                                else the current one is modified (default: False)

        return                  instance of RestAPI
        """
        copy = self.copy() if create_new else self
        copy.http_client = http_client
        return copy

    def add_post_response_hook(self, hooks, create_new=False):
        """Add a post response hook

        hooks                   a function that is call when the response is completed.
                                This function will be called for any status code.
                                Exceptions raised by a hook propagate to the caller.
        create_new              if True a new RestAPI object is returned,
                                else the current one is modified (default: False)
        """
        copy = self.copy() if create_new else self
        copy.post_response_hooks.append(hooks)
        return copy

    def partial(self, create_new=False, **params):
        """Partially fill this api.

        create_new              if True a new RestAPI object is returned,
                                else the current one is modified (default: False)
        **params                fill the object with partial data.

        This is especially useful if you are creating multiple method for a single endpoint.
        """
        copy = self.copy() if create_new else self
        for key, param in params.items():
            if key not in copy.params and key not in copy.url_params:
                raise RestAPIRuntimeException("Invalid params {0}".format(key))
            copy._partial_values[key] = param
        return copy

    def accepts(self, key):
        """True if key is a param or url param of this api"""
        return key in self.params or key in self.url_params

    def __call__(self, **params):
        """The actual call method

        Note: This will return a future, that needs to be yield.
        Returning a future here allows you to control when you yield it.
        Please call this with keyword arguments
        """
        return self._fetch_and_parse(params=params)

    @tornado.gen.coroutine
    def _fetch_and_parse(self, params):
        """Fetch and parse
        return the response, do not do any processing except decoding and hooks

        please call this with keyword arguments
        """
        request = self._create_request(params=params)
        http_client = self.http_client or tornado.httpclient.AsyncHTTPClient()
        response = yield http_client.fetch(request, raise_error=False)
        if response.body is not None and self.decode is not None:
            response.decoded_body = response.body.decode(self.decode)

        if response.code < 200 or response.code >= 300:
            logger.warning("Request error: URL: %s Method: %s Code: %s Body: %r",
                    response.request.url, response.request.method, response.code, response.body)

        for hook in self.post_response_hooks:
            hook(response)

        return response

    def request(self, **params):
        """Create a request with params
        """
        return self._create_request(params=params)

    def _create_request(self, params):
        """Internal method to create request
        """
        for param_key in params:
            if param_key in self._partial_values:
                raise RestAPIRuntimeException("param {0} have been fixed".format(param_key))

        actual_params = {}
        actual_params.update(self._default_values)
        actual_params.update({ k: v for k, v in params.items() if v is not None })
        actual_params.update(self._partial_values)

        self._clean_and_check_if_ready(actual_params)
        url = self._parse_url_and_pop_params(actual_params)
        body = None
        # create the actual request
        _r = { "method": self.method, "headers": {} }
        _r["headers"].update(self.headers)
        for provider in self.header_providers:
            _r["headers"].update(provider())

        if self.method == RestAPI.GET: # if method is GET, params are added to url
            url = tornado.httputil.url_concat(url, actual_params)
        elif self.request_body_type == RestAPI.MULTIPART:
            files = { k: v for k, v in actual_params.items()
                    if self.params.get(k, {}).get("type") == RestAPI.TYPE_FILE }
            fields = { k: v for k, v in actual_params.items() if k not in files }
            content_type, body = encode_multipart(fields, files)
            _r["headers"]["Content-Type"] = content_type
        else:
            body = json.dumps(actual_params)
            _r["headers"]["Content-Type"] = "application/json"

        _r["url"] = url

        if body is not None:
            _r["body"] = body

        request = tornado.httpclient.HTTPRequest(**_r)
        return request

    def _clean_and_check_if_ready(self, actual_params):
        """Check if the request is ready to be called

        raise RestAPIRuntimeException if not enough param is passed to create the request
        """
        if self.host is None:
            raise RestAPIRuntimeException("host is not set")
        for key, param in self.params.items():
            if param.get("is_required") and key not in actual_params:
                raise RestAPIRuntimeException("param {0} is required".format(key))

            if actual_params.get(key) is not None:
                old_value = actual_params[key]
                new_value = self._check_type_and_value_for_param(key, old_value, param)
                actual_params[key] = new_value

        for key in list(actual_params.keys()):
            if key not in self.params and key not in self.url_params:
                raise RestAPIRuntimeException("{0} is not a valid param".format(key))

    def _check_type_and_value_for_param(self, key, value, param):
        param_type = param.get("type")
        if param_type == RestAPI.TYPE_STRING:
            try:
                value = str(value)
            except ValueError:
                raise RestAPIRuntimeException("{0} cannot be converted to a string".format(value))
        elif param_type == RestAPI.TYPE_INT:
            try:
                value = int(value)
            except ValueError:
                raise RestAPIRuntimeException("{0} cannot be converted to a int".format(value))
        elif param_type == RestAPI.TYPE_DICT:
            if not isinstance(value, dict):
                raise RestAPIRuntimeException("{0} is not a dictionary".format(value))
        elif param_type == RestAPI.TYPE_BOOL:
            if not isinstance(value, bool):
                raise RestAPIRuntimeException("{0} is not a boolean".format(value))
        elif param_type == RestAPI.TYPE_FILE:
            if not (isinstance(value, tuple) and len(value) == 2):
                raise RestAPIRuntimeException("{0} is not a (filename, content) pair".format(key))

        return value

    def _parse_url_and_pop_params(self, actual_params):
        url_params = {}
        for param in self.url_params:
            if param not in actual_params:
                raise RestAPIRuntimeException("URL params {0} is required".format(param))
            url_params[param] = tornado.escape.url_escape(str(actual_params.pop(param)), plus=False)

        url = self.url.format(**url_params)
        return "{protocol}://{host}{url}".format(protocol=self.protocol, host=self.host, url=url)


def parse_json_body(response):
    """A post response hook that parses the output to json

    the parsed body is stored in response.json_body

    raise RestAPIParserException if the body is not json
    """
    body = response.decoded_body if hasattr(response, "decoded_body") else response.body
    try:
        response.json_body = json.loads(body)
    except ValueError as e:
        response.json_body = None
        raise RestAPIParserException("{0} returned a non json body: {1}".format(
            response.request.url, e))


import os
import json
import tempfile
import logging

logger = logging.getLogger(__name__)

RC_USER_TOKEN_KEY = "rc_token"
RC_USER_ID_KEY = "rc_uid"


class Session(object):
    """Holds the session credentials (auth token, user id) of one adapter.

    The credentials are kept in memory. If a path is given they are also
    written to that json file on every change and read back on creation,
    so a later process can reuse the login.

    Expiry is not tracked here, an expired token shows up as an http error
    from the server.
    """

    def __init__(self, path=None):
        self.path = path
        self._values = { RC_USER_TOKEN_KEY: "", RC_USER_ID_KEY: "" }
        if self.path is not None and os.path.exists(self.path):
            self._load()

    @property
    def token(self):
        return self._values[RC_USER_TOKEN_KEY]

    @property
    def user_id(self):
        return self._values[RC_USER_ID_KEY]

    def get_credentials(self):
        return dict(self._values)

    def set_credentials(self, credentials):
        """Write both credentials, a missing value is stored as an empty string

        set_credentials({}) clears the session.
        """
        self._values = {
            RC_USER_TOKEN_KEY: credentials.get(RC_USER_TOKEN_KEY) or "",
            RC_USER_ID_KEY: credentials.get(RC_USER_ID_KEY) or "",
        }
        if self.path is not None:
            self._save()

    def clear(self):
        self.set_credentials({})

    def auth_headers(self):
        return { "X-Auth-Token": self.token, "X-User-Id": self.user_id }

    def _load(self):
        try:
            with open(self.path, "r") as f:
                values = json.load(f)
            self._values = {
                RC_USER_TOKEN_KEY: values.get(RC_USER_TOKEN_KEY) or "",
                RC_USER_ID_KEY: values.get(RC_USER_ID_KEY) or "",
            }
        except (ValueError, AttributeError) as e:
            logger.warning("Ignoring unreadable credentials file %s: %s", self.path, e)
            return
        logger.debug("loaded credentials from %s", self.path)

    def _save(self):
        # mkstemp creates the file readable by the owner only
        fd, tmp_path = tempfile.mkstemp(dir=os.path.dirname(os.path.abspath(self.path)),
            prefix=".credentials-", suffix=".tmp")
        try:
            with os.fdopen(fd, "w") as f:
                json.dump(self._values, f)
            os.replace(tmp_path, self.path)
        except BaseException:
            os.unlink(tmp_path)
            raise

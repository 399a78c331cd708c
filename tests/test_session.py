
import os
import json
import stat

import pytest

from rocketroom.session import Session, RC_USER_TOKEN_KEY, RC_USER_ID_KEY


def test_new_session_is_empty():
    session = Session()
    assert session.get_credentials() == { RC_USER_TOKEN_KEY: "", RC_USER_ID_KEY: "" }
    assert session.auth_headers() == { "X-Auth-Token": "", "X-User-Id": "" }


def test_set_and_clear():
    session = Session()
    session.set_credentials({ RC_USER_TOKEN_KEY: "tok", RC_USER_ID_KEY: "uid" })
    assert session.token == "tok"
    assert session.user_id == "uid"
    assert session.auth_headers() == { "X-Auth-Token": "tok", "X-User-Id": "uid" }

    session.set_credentials({ RC_USER_TOKEN_KEY: "tok2" })
    assert session.get_credentials() == { RC_USER_TOKEN_KEY: "tok2", RC_USER_ID_KEY: "" }

    session.clear()
    assert session.get_credentials() == { RC_USER_TOKEN_KEY: "", RC_USER_ID_KEY: "" }


def test_sessions_do_not_share_state():
    first, second = Session(), Session()
    first.set_credentials({ RC_USER_TOKEN_KEY: "tok", RC_USER_ID_KEY: "uid" })
    assert second.token == ""


def test_file_backed_session(tmp_path):
    path = str(tmp_path / "credentials.json")
    session = Session(path=path)
    session.set_credentials({ RC_USER_TOKEN_KEY: "tok", RC_USER_ID_KEY: "uid" })
    with open(path) as f:
        assert json.load(f) == { RC_USER_TOKEN_KEY: "tok", RC_USER_ID_KEY: "uid" }

    assert Session(path=path).get_credentials() == {
        RC_USER_TOKEN_KEY: "tok", RC_USER_ID_KEY: "uid" }

    session.clear()
    assert Session(path=path).token == ""


@pytest.mark.skipif(os.name != "posix", reason="file modes are posix only")
def test_credentials_file_is_private(tmp_path):
    path = tmp_path / "credentials.json"
    Session(path=str(path)).set_credentials({ RC_USER_TOKEN_KEY: "secret", RC_USER_ID_KEY: "uid" })
    assert stat.S_IMODE(os.stat(str(path)).st_mode) == 0o600
    assert os.listdir(str(tmp_path)) == [ "credentials.json" ]


@pytest.mark.parametrize("content", [ '{"rc_token": "tru', "[1, 2]", "" ])
def test_unreadable_credentials_file_starts_empty(tmp_path, content):
    path = tmp_path / "credentials.json"
    path.write_text(content)
    session = Session(path=str(path))
    assert session.get_credentials() == { RC_USER_TOKEN_KEY: "", RC_USER_ID_KEY: "" }

    session.set_credentials({ RC_USER_TOKEN_KEY: "tok", RC_USER_ID_KEY: "uid" })
    assert Session(path=str(path)).token == "tok"

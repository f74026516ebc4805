# ASCII-only. No ellipses.

from __future__ import annotations

import json
import os
import sys
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional

from google.auth.exceptions import GoogleAuthError
from google.auth.transport.requests import Request
from google.oauth2.credentials import Credentials
from google_auth_oauthlib.flow import InstalledAppFlow
from googleapiclient.discovery import build

from .util import load_json, save_json_atomic


APP_DIR_NAME = "yfc"
TOKEN_FILE_NAME = "token.json"

AUTH_URI = "https://accounts.google.com/o/oauth2/auth"
TOKEN_URI = "https://oauth2.googleapis.com/token"


class AuthError(RuntimeError):
    pass


def youtube_scopes() -> List[str]:
    # Both scopes up front so posting the comment never needs a second consent.
    return [
        "https://www.googleapis.com/auth/youtube.readonly",
        "https://www.googleapis.com/auth/youtube.force-ssl",
    ]


def user_config_dir(environ: Optional[Mapping[str, str]] = None, platform: Optional[str] = None) -> Path:
    env = os.environ if environ is None else environ
    plat = sys.platform if platform is None else platform
    if plat.startswith("win"):
        appdata = str(env.get("APPDATA") or "").strip()
        if appdata:
            return Path(appdata)
    xdg = str(env.get("XDG_CONFIG_HOME") or "").strip()
    if xdg:
        return Path(xdg)
    home = str(env.get("HOME") or "").strip()
    return (Path(home) if home else Path.home()) / ".config"


def token_cache_path(environ: Optional[Mapping[str, str]] = None, platform: Optional[str] = None) -> Path:
    """Where the OAuth token is cached.

    YFC_TOKEN_PATH wins when set; otherwise <user config dir>/yfc/token.json.
    """
    env = os.environ if environ is None else environ
    override = str(env.get("YFC_TOKEN_PATH") or "").strip()
    if override:
        return Path(override).expanduser()
    return user_config_dir(env, platform) / APP_DIR_NAME / TOKEN_FILE_NAME


def client_config(client_id: str, client_secret: str) -> Dict[str, Any]:
    return {
        "installed": {
            "client_id": client_id,
            "client_secret": client_secret,
            "auth_uri": AUTH_URI,
            "token_uri": TOKEN_URI,
        }
    }


def load_cached_credentials(token_path: Path, client_id: str) -> Optional[Credentials]:
    """Return cached credentials, or None when the cache is missing or unusable.

    A corrupt file, a token issued for another client, or a token without the
    required scopes is treated the same as no cache at all.
    """
    if not token_path.exists():
        print("[auth] cache=miss reason=absent path=%s" % token_path)
        return None
    try:
        info = load_json(token_path)
        if not isinstance(info, dict):
            raise ValueError("token cache must be a JSON object")
        creds = Credentials.from_authorized_user_info(info)
        has_scopes = creds.has_scopes(youtube_scopes())
    except (OSError, ValueError, TypeError, AttributeError) as e:
        print("[auth][warn] cache=miss reason=unreadable path=%s err=%s" % (token_path, str(e).replace("\n", " ")), file=sys.stderr)
        return None

    if str(creds.client_id or "") != client_id:
        print("[auth] cache=miss reason=other_client path=%s" % token_path)
        return None
    if not has_scopes:
        print("[auth] cache=miss reason=missing_scopes path=%s" % token_path)
        return None
    return creds


def save_credentials(token_path: Path, creds: Credentials) -> None:
    save_json_atomic(token_path, json.loads(creds.to_json()))
    print("[auth] cache=written path=%s" % token_path)


def _persist(token_path: Path, creds: Credentials) -> None:
    try:
        save_credentials(token_path, creds)
    except OSError as e:
        # The token is still good for this run.
        print("[auth][warn] cache=write_failed path=%s err=%s" % (token_path, e), file=sys.stderr)


def refresh_credentials(creds: Credentials) -> bool:
    try:
        creds.refresh(Request())
    except GoogleAuthError as e:
        print("[auth][warn] refresh=failed err=%s" % str(e).replace("\n", " "), file=sys.stderr)
        return False
    print("[auth] refresh=ok")
    return True


def run_installed_flow(client_id: str, client_secret: str, open_browser: bool = True) -> Credentials:
    """Interactive consent through a one-shot localhost callback listener.

    The listener lives only inside run_local_server and is closed once the
    authorization code has been captured, whether or not the exchange works.
    """
    flow = InstalledAppFlow.from_client_config(client_config(client_id, client_secret), scopes=youtube_scopes())
    try:
        creds = flow.run_local_server(
            port=0,
            open_browser=open_browser,
            authorization_prompt_message="[auth] open this URL to authorize yfc: {url}",
            success_message="Authorization complete. You may close this window.",
            access_type="offline",
            prompt="consent",
        )
    except Exception as e:
        raise AuthError("authorization flow failed: %s" % e) from e
    if not creds or not creds.token:
        raise AuthError("authorization flow returned no access token")
    if not creds.refresh_token:
        print("[auth][warn] no refresh token returned; the next run will ask for consent again", file=sys.stderr)
    return creds


def acquire(
    client_id: str,
    client_secret: str,
    token_path: Optional[Path] = None,
    open_browser: bool = True,
) -> Credentials:
    """Return usable credentials: cached, refreshed, or freshly authorized.

    Raises AuthError when the interactive authorization fails.
    """
    path = token_path or token_cache_path()

    creds = load_cached_credentials(path, client_id)
    if creds is not None:
        if creds.valid:
            print("[auth] cache=hit path=%s" % path)
            return creds
        if creds.refresh_token:
            print("[auth] cache=expired refresh=attempt")
            if refresh_credentials(creds):
                _persist(path, creds)
                return creds
        else:
            print("[auth] cache=expired refresh=unavailable")

    print("[auth] flow=interactive")
    creds = run_installed_flow(client_id, client_secret, open_browser=open_browser)
    _persist(path, creds)
    return creds


def build_service(creds: Credentials) -> Any:
    return build("youtube", "v3", credentials=creds, cache_discovery=False)

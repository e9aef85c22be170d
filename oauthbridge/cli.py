#!/usr/bin/env python3
"""
Terminal walkthrough of the credential-based authorize step.

    python -m oauthbridge.cli --email user@example.com --token <request token>
    python -m oauthbridge.cli --email user@example.com --consumer-key K --consumer-secret S
    python -m oauthbridge.cli --email user@example.com --token T --via http://localhost:8000
"""

import argparse
import getpass
import os
import sys

from requests_oauthlib import OAuth1Session

from .bridge import AuthorizationBridge, AuthorizationRequest
from .client import BridgeClient
from .errors import BridgeError
from .events import default_event_hook
from .provider import AUTHORIZE_URL, REQUEST_TOKEN_URL

CALLBACK_URL = "oob"  # Out-of-band, the verifier is handed back to us

class bcolors:
    """ANSI color codes for terminal output"""
    HEADER = '\033[95m'
    BLUE = '\033[94m'
    CYAN = '\033[96m'
    GREEN = '\033[92m'
    YELLOW = '\033[93m'
    RED = '\033[91m'
    ENDC = '\033[0m'
    BOLD = '\033[1m'

def print_step(step_num, title):
    """Print step header"""
    print(f"\n{bcolors.BOLD}{bcolors.BLUE}{'='*60}{bcolors.ENDC}")
    print(f"{bcolors.BOLD}{bcolors.BLUE}STEP {step_num}: {title}{bcolors.ENDC}")
    print(f"{bcolors.BOLD}{bcolors.BLUE}{'='*60}{bcolors.ENDC}\n")

def print_success(message):
    print(f"{bcolors.GREEN}✅ {message}{bcolors.ENDC}")

def print_error(message):
    print(f"{bcolors.RED}❌ {message}{bcolors.ENDC}")

def print_info(label, value):
    print(f"{bcolors.CYAN}{label}:{bcolors.ENDC} {bcolors.YELLOW}{value}{bcolors.ENDC}")


def load_config(path):
    """Load the bridge config; imported late so --help works without a config file"""
    from .config import Config
    return Config(path)


def fetch_request_token(consumer_key, consumer_secret):
    """Obtain an unauthorized request token from the provider"""
    oauth = OAuth1Session(
        client_key=consumer_key,
        client_secret=consumer_secret,
        callback_uri=CALLBACK_URL,
    )
    tokens = oauth.fetch_request_token(REQUEST_TOKEN_URL)
    return tokens["oauth_token"]


def build_authorizer(config, via=None, verbose=False):
    """Pick the in-process bridge or a remote one, both answer authorize(request)"""
    if via or config.client_mode == "intermediary":
        return BridgeClient(via or config.intermediary_url, timeout=config.provider_timeout)

    return AuthorizationBridge(
        timeout=config.provider_timeout,
        oob_callback=config.oob_callback,
        check_email_format=config.check_email_format,
        body_preview_length=config.body_preview_length,
        on_event=default_event_hook(verbose),
    )


def parse_args(argv=None):
    parser = argparse.ArgumentParser(description="Authorize an OAuth1 request token with email and password")
    parser.add_argument("--email", required=True, help="Account email")
    parser.add_argument("--password", help="Account password, prompted for when omitted")
    parser.add_argument("--token", help="Request token to authorize")
    parser.add_argument("--consumer-key", help="Consumer key, used to fetch a request token")
    parser.add_argument("--consumer-secret", help="Consumer secret, used to fetch a request token")
    parser.add_argument("--via", help="Base URL of a bridge service to call instead of the provider")
    parser.add_argument("--config", default=os.getenv("OAUTH_BRIDGE_CONFIG", "config.yaml"), help="Config file")
    parser.add_argument("--verbose", action="store_true", help="Print bridge events")

    args = parser.parse_args(argv)
    if not args.token and not (args.consumer_key and args.consumer_secret):
        parser.error("either --token or both --consumer-key and --consumer-secret are required")
    return args


def main(argv=None):
    args = parse_args(argv)
    config = load_config(args.config)
    password = args.password or getpass.getpass("Password: ")

    print(f"{bcolors.CYAN}Configuration:{bcolors.ENDC}")
    print_info("Authorize URL", AUTHORIZE_URL)
    print_info("Mode", "intermediary" if args.via or config.client_mode == "intermediary" else "direct")

    request_token = args.token
    if not request_token:
        print_step(1, "Request Token")
        try:
            request_token = fetch_request_token(args.consumer_key, args.consumer_secret)
        except Exception as e:
            print_error(f"Failed to get request token: {str(e)}")
            return 1
        print_success("Request Token obtained!")
    print_info("oauth_token", request_token)

    print_step(2, "Authorize With Credentials")
    authorizer = build_authorizer(config, via=args.via, verbose=args.verbose)
    request = AuthorizationRequest(email=args.email, password=password, request_token=request_token)

    try:
        result = authorizer.authorize(request)
    except BridgeError as e:
        print_error(f"{e.error_kind}: {e.message}")
        for key, value in e.to_dict().items():
            if key not in ("errorKind", "message"):
                print_info(key, value)
        return 1

    print_success("Authorization successful!")
    print_info("oauth_verifier", result.verifier)
    if result.redirect_location:
        print_info("Redirect", result.redirect_location)
    return 0


if __name__ == "__main__":
    try:
        sys.exit(main())
    except KeyboardInterrupt:
        print(f"\n{bcolors.YELLOW}Interrupted by user.{bcolors.ENDC}\n")
        sys.exit(1)

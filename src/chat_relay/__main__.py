import sys

from chat_relay.server import run

sys.exit(run())

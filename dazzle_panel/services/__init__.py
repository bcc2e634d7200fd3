# Service layer for the Dazzle panel
#
# - encoding.py:       ZPL payload to bytes and base64
# - print_client.py:   HTTP client for the print service (probe, status, print)
# - watcher.py:        shared reachability polling for many subscribers
# - backend.py:        command/event boundary (+ in-process implementation)
# - subscriptions.py:  push listener lifecycle
# - server_manager.py: start/stop a local print service subprocess

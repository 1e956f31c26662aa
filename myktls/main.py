"""
Main entry point for the mykt Language Server.

This file is executed when running: python -m myktls

The server communicates with editors via stdin/stdout using JSON-RPC.
"""
import os

from myktls.lsp.server import create_server


def main():
    """Start the language server on stdin/stdout."""

    # stdout carries the protocol, so debug notes go to stderr.
    if os.getenv("DEBUG"):
        import sys

        print("myktls starting in DEBUG mode", file=sys.stderr)
        print("Waiting for debugger to attach on port 5678...", file=sys.stderr)
        try:
            import debugpy  # type: ignore
            debugpy.listen(("127.0.0.1", 5678))
            debugpy.wait_for_client()
            print("Debugger attached, continuing", file=sys.stderr)
        except ImportError:
            print("debugpy not available - install with: pip install debugpy", file=sys.stderr)

    server = create_server()

    # Start the server - it will listen on stdin/stdout for LSP messages
    # from the editor client
    server.start_io()

if __name__ == "__main__":
    main()

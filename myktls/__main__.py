"""
Main entry point for the mykt Language Server.

This file is executed when running: python -m myktls
"""
from myktls.main import main

if __name__ == "__main__":
    main()

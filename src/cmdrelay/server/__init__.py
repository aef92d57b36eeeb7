"""HTTP server exposing the cmdrelay gateway.

Binds submit, poll, report and log inspection to REST endpoints and
owns the process lifecycle: loading the log at startup and cancelling
outstanding timers at shutdown.
"""

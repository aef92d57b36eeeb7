"""cmdrelay -- Asynchronous command-dispatch rendezvous.

A caller submits a command and blocks until a separately polling agent
picks it up, executes it out of band, and reports the result back by
correlation id. Every command is recorded in an append-only execution
log together with its final status.
"""

__version__ = "0.1.0"

"""The bridge client: workspace discovery, server link and session lifecycle.

- **workspace**: root classification and the in-process root index
- **sync**: notification dedup and the event reconciler
- **link**: the language-server link (protocol + pygls stdio implementation)
- **environment**: executable lookup and fish environment queries
- **session**: activation / restart / deactivation of one bridge session
- **host**: JSON-lines host event stream driver
"""

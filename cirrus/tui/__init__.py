"""Terminal UI: messages, widgets, the root coordinator and its event loop."""

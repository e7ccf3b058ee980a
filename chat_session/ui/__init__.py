"""NiceGUI interface - thin presentation layer for chat interactions.

Responsibilities:
    - Message list rendering from session snapshots
    - Input capture, send and stop controls
    - Starting a fresh conversation

Contains no business logic. Every state change goes through ChatSession and
the page re-renders from the store notifications it receives.
"""

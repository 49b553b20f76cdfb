"""
Notepin — Client Package
=========================

What:  Everything the browser half of Notepin does, minus the drawing.
How:   A UI shell owns the widgets and forwards user events to a
       FeedController; the controller updates a ClientSession that the
       shell renders from.

Module Inventory:
    - api.py:        PostsClient, the four HTTP calls (httpx)
    - pin_gate.py:   PinGate state machine and GuardedAction descriptors
    - images.py:     PendingImage / PendingImageTray (selected, not yet sent)
    - render.py:     PostCard, time labels, edit/confirm/lightbox views, HTML
    - session.py:    ClientSession, the per-page-load state object
    - controller.py: FeedController, the event handlers

Data flow:
    user action → PinGate (maybe deferred) → PostsClient → HTTP API
    → response → PostCard / ClientSession updated
"""

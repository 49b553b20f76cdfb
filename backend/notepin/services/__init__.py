# Services package init
"""
Notepin — Services Layer
=========================

What:  Business logic between routes (HTTP) and stores (persistence).

Service Inventory:
    - UploadService: image validation, naming, storage and removal
    - PostService:   post rules and the create/edit/delete workflows
"""

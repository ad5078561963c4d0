"""
Travel Story Backend — Services Layer
=======================================

Service Inventory:
    - TokenService: signs and verifies 72-hour access tokens
    - AuthService: registration, login, current-user lookup
    - StoryService: ownership-scoped travel story operations
    - MediaService: image upload and deletion on local disk

Each module exposes a singleton built from settings; routes receive them
through the providers in `travelstory.dependencies`.
"""

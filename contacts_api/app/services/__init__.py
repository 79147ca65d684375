"""
Service layer.

``DirectoryService`` implements the use cases on top of the user
directory, the username index, the contact store and the access
controller.  API handlers only talk to ``DirectoryService``.
"""

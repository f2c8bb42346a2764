"""
ACL evaluation and tree materialization.

Import concrete modules directly (`aclinspector.acl.service`, ...); this package does not
re-export them so that config/core modules can be imported without pulling in the service.
"""

from __future__ import annotations

from typing import Literal

# Default node type families of the content model.
DOCUMENT_NODE_TYPE = "Neos.Neos:Document"
CONTENT_COLLECTION_NODE_TYPE = "Neos.Neos:ContentCollection"

# Node a general tree record's acl summary is computed against.
AclTarget = Literal["parent", "self"]

"""ACL inspector: permission-annotated views of a content tree for a set of roles."""

"""Review workflow rules: roles, stages, errors and authorization."""

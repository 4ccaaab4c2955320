"""Config subpackage - settings and domain constants."""

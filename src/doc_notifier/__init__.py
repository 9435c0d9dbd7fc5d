"""Email notifications for newly created business documents."""

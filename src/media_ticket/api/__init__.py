"""HTTP plumbing shared by feature routers."""

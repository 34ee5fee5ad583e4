"""Report outdated Terraform module references in CI."""

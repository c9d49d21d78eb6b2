"""rolehop: resolve, verify and cache AWS credentials before handing off to Terraform."""

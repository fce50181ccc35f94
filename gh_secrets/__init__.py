"""gh-secrets: manage GitHub Actions secrets from the command line."""

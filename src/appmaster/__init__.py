"""Application master startup: security configuration and keytab staging."""

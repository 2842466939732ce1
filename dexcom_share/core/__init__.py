"""Session, transport and error primitives for the Share client."""

"""L2 Resolver — turn a tool description into a usable executable path."""

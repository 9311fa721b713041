"""omnidev - declarative capability sources for AI agent tooling."""

"""Application services: components, composition and memoization."""

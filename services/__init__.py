"""Application services orchestrating the domain and its collaborators."""

"""movie-similarity core: settings, exceptions, domain models and interfaces."""

"""Command line entry points for selfcached."""

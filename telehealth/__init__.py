"""Django project package for the telehealth backend."""

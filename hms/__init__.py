"""Django project package for the hospital workflow backend."""

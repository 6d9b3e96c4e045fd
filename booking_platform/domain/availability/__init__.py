"""Provider weekly availability and free-slot lookup"""

"""Users domain - Profiles, roles and the admin dashboard"""

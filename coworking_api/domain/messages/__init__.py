"""Messages domain - Contact form inbox"""

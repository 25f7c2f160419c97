"""
WSGI config for the eyewear storefront.
"""
import os

from django.core.wsgi import get_wsgi_application

os.environ.setdefault('DJANGO_SETTINGS_MODULE', 'eyewear.settings')

application = get_wsgi_application()

"""LYNX Client Meta information.
   LYNX Client talks to a self-hosted LYNX link-in-bio backend and keeps
   the admin session token encrypted at rest.
"""
__title__ = 'lynx_client'
__description__ = (
   'LYNX Client talks to a self-hosted LYNX link-in-bio backend and keeps '
   'the admin session token encrypted at rest.'
)
__version__ = '0.3.0'
__copyright__ = 'Copyright (c) 2024 LYNX contributors'
__author__ = 'LYNX contributors'
__license__ = 'Apache-2.0'

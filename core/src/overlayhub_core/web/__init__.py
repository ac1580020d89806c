"""Front door for the single-page web client.

- redirects insecure requests to HTTPS (localhost is exempt)
- serves built client files out of the web root
- answers every other GET with index.html so client-side routes survive a reload
"""

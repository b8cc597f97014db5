# Routes package init
"""
FundFlow Backend — API Routes Package
=======================================

Route Inventory:
    - auth.py:          /api/auth/*           register, sign-in, SSO login, OTP
    - approvals.py:     /api/approve-lists*   approval inbox
                        /api/status-approves  status lookup
    - cron.py:          /api/cron/*           scheduler-triggered chat reminders
    - configs.py:       /api/config*          config entries and types
    - transactions.py:  /api/transactions*    expenses, /api/net-amount, /api/history
    - uploads.py:       /api/upload/*         image hosting relay
    - ocr.py:           /api/ocr              receipt OCR relay
    - health.py:        /health

Routes stay thin: read the request, call a service, wrap the result in a
response envelope. Errors are raised as FundFlowError subclasses and turned
into JSON by the handlers in main.py.
"""

# Services package init
"""
FundFlow Backend — Services Layer
===================================

Service Inventory:
    - LedgerService:        net amount + append-only history
    - TransactionService:   transactions, items, files; drives the ledger
    - ApprovalService:      approval inbox and source-system callbacks
    - ConfigService:        config entries and types
    - AuthService:          registration, sign-in, SSO provisioning, OTP
    - ReminderService:      scheduled chat messages
    - ImageService:         Cloudinary uploads
    - OcrService:           Cloudmersive receipt scanning
    - NotificationService:  LINE Messaging API push
    - EmailService:         SMTP delivery of OTP codes

Services take the request's AsyncSession as an argument and never commit;
get_db_session commits or rolls back once per request. Each module exposes
a module-level singleton (e.g. `ledger_service`).
"""

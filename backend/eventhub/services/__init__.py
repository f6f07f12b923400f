# Services package init
"""
EventHub Backend — Services Layer
===================================

What:  Business logic layer sitting between routes (HTTP) and database (persistence).
Why:   Separation of concerns: routes handle HTTP, services handle business rules.
How:   Services receive the request's AsyncSession plus validated schemas and
       return ORM objects or response schemas. Each module exposes a
       singleton instance.

Service Inventory:
    - AuthService:          register, login, refresh, verification, password reset, social
    - UserService:          own profile and public profiles
    - EventService:         listing, detail, create/update/delete with ownership checks
    - CategoryService:      category listing
    - VendorDashboardService: vendor dashboard aggregates
    - AdminService:         platform stats and user management
    - EmailService:         transactional email over SMTP
    - LLMService (abstract) / GeminiService: AI event drafting and image generation
    - FileService:          image validation, storage, serving and cleanup
    - EventImageService:    upload batches and AI image batches → public URLs
"""

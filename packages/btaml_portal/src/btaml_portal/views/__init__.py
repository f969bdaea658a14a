from .account import (
    AvatarUploadView,
    LoginView,
    LogoutView,
    PasswordChangeView,
    ProfileView,
    SignupView,
)
from .admin import (
    AdminArticleDeleteView,
    AdminArticleFormView,
    AdminArticleListView,
    AdminDashboardView,
    AdminLoginView,
    AdminLogoutView,
)
from .api import NewsletterView
from .public import (
    BusinessDetailView,
    BusinessListView,
    HomeView,
    LegalPageView,
    RegionDetailView,
    RegionListView,
    ScholarshipDetailView,
    ScholarshipListView,
    SearchView,
    SecurityDetailView,
    SecurityListView,
)

__all__ = [
    "AdminArticleDeleteView",
    "AdminArticleFormView",
    "AdminArticleListView",
    "AdminDashboardView",
    "AdminLoginView",
    "AdminLogoutView",
    "AvatarUploadView",
    "BusinessDetailView",
    "BusinessListView",
    "HomeView",
    "LegalPageView",
    "LoginView",
    "LogoutView",
    "NewsletterView",
    "PasswordChangeView",
    "ProfileView",
    "RegionDetailView",
    "RegionListView",
    "ScholarshipDetailView",
    "ScholarshipListView",
    "SearchView",
    "SecurityDetailView",
    "SecurityListView",
    "SignupView",
]

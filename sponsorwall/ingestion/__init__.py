"""
Ingestion layer — provider adapters, avatar resolution, and the snapshot cache.

Submodules:
  base                   — ``SponsorProvider`` contract and shared helpers
  github_client          — GitHub Sponsors (GraphQL)
  patreon_client         — Patreon campaign members (OAuth2 v2)
  opencollective_client  — OpenCollective orders + credit transactions (GraphQL v2)
  afdian_client          — Afdian signed open API (CNY)
  polar_client           — Polar subscriptions (REST v1)
  providers              — name → adapter registry, auto-detection
  prorate                — tier credit for lapsed one-time contributions
  avatars                — concurrent avatar download and normalisation
  cache                  — single-file JSON snapshot of resolved sponsorships

Credential placement (.env, gitignored):
  SPONSORWALL_GITHUB_LOGIN / SPONSORWALL_GITHUB_TOKEN
  SPONSORWALL_PATREON_TOKEN
  SPONSORWALL_OPENCOLLECTIVE_KEY  (+ _ID | _SLUG | _GH_HANDLE)
  SPONSORWALL_AFDIAN_USER_ID / SPONSORWALL_AFDIAN_TOKEN
  SPONSORWALL_POLAR_TOKEN / SPONSORWALL_POLAR_ORGANIZATION
"""

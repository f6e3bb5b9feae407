"""Preset option catalogue for the consultation wizard.

Static value/label pairs offered by the intake form. Values are what gets
stored in the consultation sections; labels are for display only.
"""

from typing import Dict, List

# (value, label) pairs grouped by form field
INDUSTRY_OPTIONS = [
    ("technology", "Technology & Software"),
    ("healthcare", "Healthcare & Medical"),
    ("finance", "Finance & Banking"),
    ("retail", "Retail & E-commerce"),
    ("manufacturing", "Manufacturing"),
    ("education", "Education"),
    ("real-estate", "Real Estate"),
    ("hospitality", "Hospitality & Tourism"),
    ("legal", "Legal Services"),
    ("marketing", "Marketing & Advertising"),
    ("construction", "Construction"),
    ("automotive", "Automotive"),
    ("food-beverage", "Food & Beverage"),
    ("entertainment", "Entertainment & Media"),
    ("nonprofit", "Non-Profit"),
    ("other", "Other"),
]

BUSINESS_TYPE_OPTIONS = [
    ("startup", "Startup (< 2 years)"),
    ("small-business", "Small Business (2-10 employees)"),
    ("medium-business", "Medium Business (11-50 employees)"),
    ("enterprise", "Enterprise (50+ employees)"),
    ("freelancer", "Freelancer / Sole Proprietor"),
    ("agency", "Agency"),
    ("nonprofit", "Non-Profit Organization"),
]

WEBSITE_STATUS_OPTIONS = [
    ("none", "No Current Website"),
    ("refresh", "Needs Refresh"),
    ("rebuild", "Complete Rebuild"),
]

PRIMARY_CHALLENGES_OPTIONS = [
    ("lead-generation", "Lead Generation"),
    ("conversion-rate", "Low Conversion Rates"),
    ("brand-awareness", "Brand Awareness"),
    ("customer-retention", "Customer Retention"),
    ("competition", "Competitive Pressure"),
    ("technology-adoption", "Technology Adoption"),
    ("customer-experience", "Customer Experience"),
    ("digital-transformation", "Digital Transformation"),
    ("outdated-website", "Outdated Website"),
    ("poor-mobile", "Poor Mobile Experience"),
    ("seo-issues", "SEO / Search Visibility"),
    ("no-online-presence", "No Online Presence"),
    ("credibility", "Lack of Credibility/Trust"),
    ("manual-processes", "Too Many Manual Processes"),
    ("other", "Other"),
]

URGENCY_LEVEL_OPTIONS = [
    ("low", "Low - Exploratory phase"),
    ("medium", "Medium - Planning for next quarter"),
    ("high", "High - Need to start within weeks"),
    ("critical", "Critical - Urgent need"),
]

PRIMARY_GOALS_OPTIONS = [
    ("increase-revenue", "Increase Revenue"),
    ("generate-leads", "Generate More Leads"),
    ("improve-conversion", "Improve Conversion Rates"),
    ("build-brand", "Build Brand Awareness"),
    ("launch-product", "Launch New Product/Service"),
    ("improve-retention", "Improve Customer Retention"),
    ("enhance-experience", "Enhance Customer Experience"),
    ("digital-presence", "Establish Digital Presence"),
    ("competitive-advantage", "Gain Competitive Advantage"),
    ("automate-processes", "Automate Business Processes"),
    ("credibility", "Build Credibility & Trust"),
    ("other", "Other"),
]

CONVERSION_GOAL_OPTIONS = [
    ("phone-calls", "Phone Calls"),
    ("form-submissions", "Form Submissions"),
    ("email-inquiries", "Email Inquiries"),
    ("bookings", "Bookings / Appointments"),
    ("purchases", "Online Purchases"),
    ("quote-requests", "Quote Requests"),
    ("newsletter-signups", "Newsletter Signups"),
]

BUDGET_RANGE_OPTIONS = [
    ("under-2k", "Under $2,000"),
    ("2k-5k", "$2,000 - $5,000"),
    ("5k-10k", "$5,000 - $10,000"),
    ("10k-20k", "$10,000 - $20,000"),
    ("20k-plus", "$20,000+"),
    ("tbd", "To Be Determined"),
]

TIMELINE_OPTIONS = [
    ("asap", "ASAP / Urgent"),
    ("1-3-months", "1-3 Months"),
    ("3-6-months", "3-6 Months"),
    ("flexible", "Flexible / No Rush"),
]

DESIGN_STYLE_OPTIONS = [
    ("modern-clean", "Modern & Clean"),
    ("bold-creative", "Bold & Creative"),
    ("corporate-professional", "Corporate & Professional"),
    ("minimalist", "Minimalist"),
    ("traditional-classic", "Traditional & Classic"),
]

FORM_OPTIONS = {
    "industry": INDUSTRY_OPTIONS,
    "business_type": BUSINESS_TYPE_OPTIONS,
    "website_status": WEBSITE_STATUS_OPTIONS,
    "primary_challenges": PRIMARY_CHALLENGES_OPTIONS,
    "urgency_level": URGENCY_LEVEL_OPTIONS,
    "primary_goals": PRIMARY_GOALS_OPTIONS,
    "conversion_goal": CONVERSION_GOAL_OPTIONS,
    "budget_range": BUDGET_RANGE_OPTIONS,
    "timeline": TIMELINE_OPTIONS,
    "design_style": DESIGN_STYLE_OPTIONS,
}

URGENCY_LEVELS = frozenset(value for value, _ in URGENCY_LEVEL_OPTIONS)
BUDGET_RANGE_VALUES = frozenset(value for value, _ in BUDGET_RANGE_OPTIONS)


def get_form_options() -> Dict[str, List[Dict[str, str]]]:
    """Return every option group as lists of {value, label} dicts."""
    return {
        field: [{"value": value, "label": label} for value, label in options]
        for field, options in FORM_OPTIONS.items()
    }

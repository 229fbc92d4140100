from enum import Enum


class FunnelProjectStatusEnum(str, Enum):
    draft = "draft"
    active = "active"
    archived = "archived"


class IntakeMethodEnum(str, Enum):
    voice = "voice"
    paste = "paste"
    upload = "upload"
    scrape = "scrape"
    wizard = "wizard"


class BusinessProfileSourceEnum(str, Enum):
    wizard = "wizard"
    voice = "voice"
    gpt_paste = "gpt_paste"
    import_ = "import"


class OfferTypeEnum(str, Enum):
    main = "main"
    upsell = "upsell"
    downsell = "downsell"


class PurchasePathwayEnum(str, Enum):
    book_call = "book_call"
    direct_purchase = "direct_purchase"


class DeckTemplateTypeEnum(str, Enum):
    test = "5_slide_test"
    masterclass = "55_slide_masterclass"


class GenerationStatusEnum(str, Enum):
    pending = "pending"
    processing = "processing"
    completed = "completed"
    failed = "failed"


class PageKindEnum(str, Enum):
    registration = "registration"
    watch = "watch"
    enrollment = "enrollment"
    checkout = "checkout"
    upsell = "upsell"


class VideoProviderEnum(str, Enum):
    cloudflare = "cloudflare"
    youtube = "youtube"
    vimeo = "vimeo"


class VideoProcessingStatusEnum(str, Enum):
    uploaded = "uploaded"
    processing = "processing"
    ready = "ready"
    failed = "failed"


class CampaignTypeEnum(str, Enum):
    organic = "organic"
    paid_ad = "paid_ad"


class MarketingBriefStatusEnum(str, Enum):
    draft = "draft"
    generating = "generating"
    ready = "ready"
    scheduled = "scheduled"
    published = "published"
    archived = "archived"


class MarketingSpaceEnum(str, Enum):
    sandbox = "sandbox"
    production = "production"


class ProspectSegmentEnum(str, Enum):
    no_show = "no_show"
    skimmer = "skimmer"
    sampler = "sampler"
    engaged = "engaged"
    hot = "hot"


class EngagementLevelEnum(str, Enum):
    cold = "cold"
    warm = "warm"
    hot = "hot"


class ConsentStateEnum(str, Enum):
    implied = "implied"
    opt_in = "opt_in"
    opted_out = "opted_out"

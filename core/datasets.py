# =============================================================================
# core/datasets.py  —  Structured Dataset Catalogue
# =============================================================================
#
# Pure configuration.  Each DatasetSpec becomes one ``web_data_<id>`` tool
# (see tools/registry.py); no handler is written by hand.  Adding a dataset
# means adding one row here.
#
# Inputs named "url" are validated as URLs by the tool schema; all other
# inputs are strings.  An input with an entry in ``defaults`` is optional.
# =============================================================================

from typing import Optional

from core.models import DatasetSpec


_CACHE_NOTE = "This can be a cache lookup, so it can be more reliable than scraping"


def _dataset(
    id: str,
    dataset_id: str,
    summary: str,
    requirement: Optional[str] = None,
    inputs: tuple[str, ...] = ("url",),
    defaults: Optional[dict[str, str]] = None,
) -> DatasetSpec:
    lines = [summary] + ([requirement] if requirement else []) + [_CACHE_NOTE]
    return DatasetSpec(
        id=id,
        dataset_id=dataset_id,
        description="\n".join(lines),
        inputs=inputs,
        defaults=defaults or {},
    )


DATASETS: list[DatasetSpec] = [
    # --- E-commerce ---
    _dataset("amazon_product", "gd_l7q7dkf244hwjntr0",
             "Quickly read structured amazon product data.",
             "Requires a valid product URL with /dp/ in it."),
    _dataset("amazon_product_reviews", "gd_le8e811kzy4ggddlq",
             "Quickly read structured amazon product review data.",
             "Requires a valid product URL with /dp/ in it."),
    _dataset("amazon_product_search", "gd_lwdb4vjm1ehb499uxs",
             "Quickly read structured amazon product search data.",
             "Requires a valid search keyword and amazon domain URL.",
             inputs=("keyword", "url", "pages_to_search"),
             defaults={"pages_to_search": "1"}),
    _dataset("walmart_product", "gd_l95fol7l1ru6rlo116",
             "Quickly read structured walmart product data.",
             "Requires a valid product URL with /ip/ in it."),
    _dataset("walmart_seller", "gd_m7ke48w81ocyu4hhz0",
             "Quickly read structured walmart seller data.",
             "Requires a valid walmart seller URL."),
    _dataset("ebay_product", "gd_ltr9mjt81n0zzdk1fb",
             "Quickly read structured ebay product data.",
             "Requires a valid ebay product URL."),
    _dataset("homedepot_products", "gd_lmusivh019i7g97q2n",
             "Quickly read structured homedepot product data.",
             "Requires a valid homedepot product URL."),
    _dataset("zara_products", "gd_lct4vafw1tgx27d4o0",
             "Quickly read structured zara product data.",
             "Requires a valid zara product URL."),
    _dataset("etsy_products", "gd_ltppk0jdv1jqz25mz",
             "Quickly read structured etsy product data.",
             "Requires a valid etsy product URL."),
    _dataset("bestbuy_products", "gd_ltre1jqe1jfr7cccf",
             "Quickly read structured bestbuy product data.",
             "Requires a valid bestbuy product URL."),

    # --- Professional / company data ---
    _dataset("linkedin_person_profile", "gd_l1viktl72bvl7bjuj0",
             "Quickly read structured linkedin people profile data."),
    _dataset("linkedin_company_profile", "gd_l1vikfnt1wgvvqz95w",
             "Quickly read structured linkedin company profile data"),
    _dataset("linkedin_job_listings", "gd_lpfll7v5hcqtkxl6l",
             "Quickly read structured linkedin job listings data"),
    _dataset("linkedin_posts", "gd_lyy3tktm25m4avu764",
             "Quickly read structured linkedin posts data"),
    _dataset("linkedin_people_search", "gd_m8d03he47z8nwb5xc",
             "Quickly read structured linkedin people search data",
             inputs=("url", "first_name", "last_name")),
    _dataset("crunchbase_company", "gd_l1vijqt9jfj7olije",
             "Quickly read structured crunchbase company data"),
    _dataset("zoominfo_company_profile", "gd_m0ci4a4ivx3j5l6nx",
             "Quickly read structured ZoomInfo company profile data.",
             "Requires a valid ZoomInfo company URL."),

    # --- Social media ---
    _dataset("instagram_profiles", "gd_l1vikfch901nx3by4",
             "Quickly read structured Instagram profile data.",
             "Requires a valid Instagram URL."),
    _dataset("instagram_posts", "gd_lk5ns7kz21pck8jpis",
             "Quickly read structured Instagram post data.",
             "Requires a valid Instagram URL."),
    _dataset("instagram_reels", "gd_lyclm20il4r5helnj",
             "Quickly read structured Instagram reel data.",
             "Requires a valid Instagram URL."),
    _dataset("instagram_comments", "gd_ltppn085pokosxh13",
             "Quickly read structured Instagram comments data.",
             "Requires a valid Instagram URL."),
    _dataset("facebook_posts", "gd_lyclm1571iy3mv57zw",
             "Quickly read structured Facebook post data.",
             "Requires a valid Facebook post URL."),
    _dataset("facebook_marketplace_listings", "gd_lvt9iwuh6fbcwmx1a",
             "Quickly read structured Facebook marketplace listing data.",
             "Requires a valid Facebook marketplace listing URL."),
    _dataset("facebook_company_reviews", "gd_m0dtqpiu1mbcyc2g86",
             "Quickly read structured Facebook company reviews data.",
             "Requires a valid Facebook company URL and number of reviews.",
             inputs=("url", "num_of_reviews")),
    _dataset("facebook_events", "gd_m14sd0to1jz48ppm51",
             "Quickly read structured Facebook events data.",
             "Requires a valid Facebook event URL."),
    _dataset("tiktok_profiles", "gd_l1villgoiiidt09ci",
             "Quickly read structured Tiktok profiles data.",
             "Requires a valid Tiktok profile URL."),
    _dataset("tiktok_posts", "gd_lu702nij2f790tmv9h",
             "Quickly read structured Tiktok post data.",
             "Requires a valid Tiktok post URL."),
    _dataset("tiktok_shop", "gd_m45m1u911dsa4274pi",
             "Quickly read structured Tiktok shop data.",
             "Requires a valid Tiktok shop product URL."),
    _dataset("tiktok_comments", "gd_lkf2st302ap89utw5k",
             "Quickly read structured Tiktok comments data.",
             "Requires a valid Tiktok video URL."),
    _dataset("x_posts", "gd_lwxkxvnf1cynvib9co",
             "Quickly read structured X post data.",
             "Requires a valid X post URL."),
    _dataset("reddit_posts", "gd_lvz8ah06191smkebj4",
             "Quickly read structured reddit posts data.",
             "Requires a valid reddit post URL."),
    _dataset("youtube_profiles", "gd_lk538t2k2p1k3oos71",
             "Quickly read structured youtube profiles data.",
             "Requires a valid youtube profile URL."),
    _dataset("youtube_comments", "gd_lk9q0ew71spt1mxywf",
             "Quickly read structured youtube comments data.",
             "Requires a valid youtube video URL.",
             inputs=("url", "num_of_comments"),
             defaults={"num_of_comments": "10"}),
    # Same upstream dataset id as booking_hotel_listings, as published.
    _dataset("youtube_videos", "gd_m5mbdl081229ln6t4a",
             "Quickly read structured YouTube videos data.",
             "Requires a valid YouTube video URL."),

    # --- Google & app stores ---
    _dataset("google_maps_reviews", "gd_luzfs1dn2oa0teb81",
             "Quickly read structured Google maps reviews data.",
             "Requires a valid Google maps URL.",
             inputs=("url", "days_limit"),
             defaults={"days_limit": "3"}),
    _dataset("google_shopping", "gd_ltppk50q18kdw67omz",
             "Quickly read structured Google shopping data.",
             "Requires a valid Google shopping product URL."),
    _dataset("google_play_store", "gd_lsk382l8xei8vzm4u",
             "Quickly read structured Google play store data.",
             "Requires a valid Google play store app URL."),
    _dataset("apple_app_store", "gd_lsk9ki3u2iishmwrui",
             "Quickly read structured apple app store data.",
             "Requires a valid apple app store app URL."),

    # --- News, code, finance, real estate, travel ---
    _dataset("reuter_news", "gd_lyptx9h74wtlvpnfu",
             "Quickly read structured reuter news data.",
             "Requires a valid reuter news report URL."),
    _dataset("github_repository_file", "gd_lyrexgxc24b3d4imjt",
             "Quickly read structured github repository data.",
             "Requires a valid github repository file URL."),
    _dataset("yahoo_finance_business", "gd_lmrpz3vxmz972ghd7",
             "Quickly read structured yahoo finance business data.",
             "Requires a valid yahoo finance business URL."),
    _dataset("zillow_properties_listing", "gd_lfqkr8wm13ixtbd8f5",
             "Quickly read structured zillow properties listing data.",
             "Requires a valid zillow properties listing URL."),
    _dataset("booking_hotel_listings", "gd_m5mbdl081229ln6t4a",
             "Quickly read structured booking hotel listings data.",
             "Requires a valid booking hotel listing URL."),
]


from funnel_builder.services.pages import DEFAULT_CHECKOUT_CONFIG


def _create(api_client, project, kind, **fields):
    return api_client.post(f"/pages/{kind}", json={"projectId": project["id"], **fields})


def test_create_page_uses_defaults(api_client, project):
    resp = _create(api_client, project, "registration")

    assert resp.status_code == 201
    page = resp.json()
    assert page["headline"] == "Reserve Your Free Seat"
    assert page["vanity_slug"] == "growth-masterclass-registration"
    assert page["is_published"] is False

    second = _create(api_client, project, "registration").json()
    assert second["vanity_slug"] == f"growth-masterclass-registration-{project['id'][:8]}"


def test_default_slugs_stay_unique_for_many_pages_of_one_kind(api_client, project):
    slugs = [_create(api_client, project, "upsell", upsellNumber=1).json()["vanity_slug"] for _ in range(4)]

    suffixed = f"growth-masterclass-upsell-{project['id'][:8]}"
    assert slugs == ["growth-masterclass-upsell", suffixed, f"{suffixed}-2", f"{suffixed}-3"]


def test_checkout_page_gets_default_configs(api_client, project):
    page = _create(api_client, project, "checkout", paymentConfig={"accepted_methods": ["card", "paypal"]}).json()

    assert page["headline"] == "Complete Your Order"
    assert page["payment_config"] == {"accepted_methods": ["card", "paypal"]}
    assert page["order_summary_config"] == DEFAULT_CHECKOUT_CONFIG["order_summary_config"]
    assert page["trust_elements"] == DEFAULT_CHECKOUT_CONFIG["trust_elements"]


def test_explicit_slug_collision_is_a_conflict(api_client, project):
    assert _create(api_client, project, "watch", vanitySlug="My Webinar").json()["vanity_slug"] == "my-webinar"

    resp = _create(api_client, project, "watch", vanitySlug="my-webinar")

    assert resp.status_code == 409
    assert resp.json()["detail"] == 'The URL "my-webinar" is already in use'


def test_update_slug(api_client, project):
    first = _create(api_client, project, "enrollment", pageType="book_call").json()
    second = _create(api_client, project, "enrollment", vanitySlug="taken-slug").json()
    assert first["page_type"] == "book_call"

    updated = api_client.put(f"/pages/enrollment/{first['id']}/slug", json={"slug": "Fresh Slug"})
    assert updated.json() == {"success": True, "slug": "fresh-slug"}

    clash = api_client.put(f"/pages/enrollment/{first['id']}/slug", json={"slug": "taken-slug"})
    assert clash.status_code == 409

    same = api_client.put(f"/pages/enrollment/{second['id']}/slug", json={"slug": "taken-slug"})
    assert same.status_code == 200

    empty = api_client.put(f"/pages/enrollment/{first['id']}/slug", json={"slug": "!!!"})
    assert empty.status_code == 400


def test_kind_specific_fields_are_validated(api_client, project):
    wrong_kind = _create(api_client, project, "registration", upsellNumber=1)
    assert wrong_kind.status_code == 400
    assert wrong_kind.json()["detail"] == "Unsupported fields for registration page: upsell_number"

    bad_number = _create(api_client, project, "upsell", upsellNumber=3)
    assert bad_number.status_code == 400
    assert bad_number.json()["detail"] == "Upsell number must be 1 or 2"

    upsell = _create(api_client, project, "upsell", upsellNumber=2, priceCents=4700).json()
    assert upsell["headline"] == "Wait! Special One-Time Offer"
    assert upsell["price_cents"] == 4700

    negative = api_client.patch(f"/pages/upsell/{upsell['id']}", json={"priceCents": -1})
    assert negative.status_code == 400
    assert negative.json()["detail"] == "Price must be zero or greater"

    unknown_video = _create(api_client, project, "watch", pitchVideoId="00000000-0000-0000-0000-000000000001")
    assert unknown_video.status_code == 404


def test_publish_update_and_delete_page(api_client, project):
    page = _create(api_client, project, "watch").json()

    published = api_client.post(f"/pages/watch/{page['id']}/publish", json={"isPublished": True}).json()
    assert published["is_published"] is True

    updated = api_client.patch(f"/pages/watch/{page['id']}", json={"subheadline": "Live this Thursday"}).json()
    assert updated["subheadline"] == "Live this Thursday"
    assert updated["headline"] == "Watch The Free Masterclass"

    listed = api_client.get("/pages/watch", params={"projectId": project["id"]}).json()
    assert [item["id"] for item in listed] == [page["id"]]

    assert api_client.delete(f"/pages/watch/{page['id']}").json() == {"success": True}
    assert api_client.get(f"/pages/watch/{page['id']}").status_code == 404
    assert api_client.get(f"/pages/watch/{page['id']}").json()["detail"] == "Watch page not found"


def test_unknown_page_kind_is_rejected(api_client, project):
    assert _create(api_client, project, "thank-you").status_code == 422


def test_watch_page_links_pitch_video(api_client, project):
    video = api_client.post(
        "/pitch-videos",
        json={"projectId": project["id"], "videoUrl": "https://videos.example.com/pitch.mp4", "videoDuration": 540},
    )
    assert video.status_code == 201
    video = video.json()
    assert video["processing_status"] == "uploaded"
    assert video["video_provider"] == "cloudflare"

    ready = api_client.patch(f"/pitch-videos/{video['id']}/status", json={"processingStatus": "ready"}).json()
    assert ready["processing_status"] == "ready"
    assert ready["video_duration"] == 540

    page = _create(api_client, project, "watch", pitchVideoId=video["id"]).json()
    assert page["pitch_video_id"] == video["id"]

    blank = api_client.post("/pitch-videos", json={"projectId": project["id"], "videoUrl": "  "})
    assert blank.status_code == 400


def test_marketing_briefs_filter_by_campaign_type(api_client, project):
    organic = api_client.post("/marketing-briefs", json={"projectId": project["id"], "name": "Organic posts"})
    assert organic.status_code == 201
    assert organic.json()["campaign_type"] == "organic"
    paid = api_client.post(
        "/marketing-briefs",
        json={"projectId": project["id"], "name": "Meta ads", "campaignType": "paid_ad", "targetPlatforms": ["facebook"]},
    ).json()

    paid_only = api_client.get("/marketing-briefs", params={"projectId": project["id"], "campaignType": "paid_ad"}).json()
    assert [brief["id"] for brief in paid_only] == [paid["id"]]
    assert paid_only[0]["target_platforms"] == ["facebook"]
    assert len(api_client.get("/marketing-briefs", params={"projectId": project["id"]}).json()) == 2

    updated = api_client.patch(f"/marketing-briefs/{paid['id']}", json={"status": "ready"}).json()
    assert updated["status"] == "ready"


def test_latest_brand_design(api_client, project):
    missing = api_client.get("/brand-designs/latest", params={"projectId": project["id"]})
    assert missing.status_code == 404

    api_client.post("/brand-designs", json={"projectId": project["id"], "primaryColor": "#111111"})
    newest = api_client.post(
        "/brand-designs", json={"projectId": project["id"], "primaryColor": "#2563eb", "headingFont": "Inter"}
    ).json()

    latest = api_client.get("/brand-designs/latest", params={"projectId": project["id"]}).json()
    assert latest["id"] == newest["id"]
    assert latest["heading_font"] == "Inter"

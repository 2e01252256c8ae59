"""Quick script to verify the Gemini and Supabase connections."""

import sys

print("Testing API connections...", flush=True)

# Test 1: Import test
print("\n[TEST 1] Testing imports...", flush=True)
try:
    from prospector.config import Settings
    from prospector.models import BusinessData
    from prospector.services import GeminiService, create_prospect_store
    print("✅ Imports successful", flush=True)
except Exception as e:
    print(f"❌ Import failed: {e}", flush=True)
    sys.exit(1)

# Test 2: Read settings
print("\n[TEST 2] Reading settings from environment", flush=True)
settings = Settings.from_env()
if not settings.gemini_api_key:
    print("❌ GEMINI_API_KEY is required", flush=True)
    sys.exit(1)
print(f"✅ Gemini model: {settings.gemini_model}", flush=True)
print(f"   Supabase configured: {settings.backend_configured}", flush=True)

gemini = GeminiService(settings.gemini_api_key, model=settings.gemini_model)

# Test 3: Grounded search
print("\n[TEST 3] Testing grounded search...", flush=True)
results = gemini.search_businesses("Dentist", "Austin, TX")
if results:
    print(f"✅ Search returned {len(results)} businesses", flush=True)
    print(f"   First result: {results[0].business_data.name}", flush=True)
else:
    print("❌ Search returned no businesses (see log for the cause)", flush=True)

# Test 4: Analysis
print("\n[TEST 4] Testing prospect analysis...", flush=True)
business = results[0].business_data if results else BusinessData(
    name="Test Dental", address="1 Congress Ave, Austin, TX"
)
insight = gemini.analyze_prospect(business)
if insight.score or insight.analysis_summary != "AI analysis unavailable at this moment.":
    print(f"✅ Analysis score: {insight.score}/100", flush=True)
    print(f"   Summary: {insight.analysis_summary[:100]}", flush=True)
else:
    print("❌ Analysis fell back to the default insight", flush=True)

# Test 5: Store
print("\n[TEST 5] Testing prospect store...", flush=True)
try:
    store = create_prospect_store(settings)
    prospects = store.get_prospects()
    backend = "Supabase" if store.is_live else "local file"
    print(f"✅ {backend} store returned {len(prospects)} prospects", flush=True)
except Exception as e:
    print(f"❌ Store check failed: {e}", flush=True)
    import traceback
    traceback.print_exc()

print("\n" + "="*60, flush=True)
print("API CONNECTION TEST COMPLETE", flush=True)
print("="*60, flush=True)

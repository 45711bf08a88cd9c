"""
Curated product database: hand-checked records keyed by the platform
product ID (Amazon ASIN, eBay item ID, Etsy listing ID, Walmart item ID,
Target TCIN, Best Buy SKU, AliExpress item ID, Shopify handle).
"""

KNOWN_PRODUCTS = {
    # Amazon
    "B075CYMYK6": {
        "name": "Instant Pot Duo Plus 9-in-1 Electric Pressure Cooker, Slow Cooker, Rice Cooker, Steamer, "
                "Sauté, Yogurt Maker, Warmer & Sterilizer, Includes App With Over 800 Recipes, Stainless Steel, "
                "3 Quart",
        "brand": "Instant Pot",
        "price": "$89.99",
        "description": "9-in-1 functionality: Pressure Cooker, Slow Cooker, Rice Cooker, Yogurt Maker, Egg Cooker, "
                       "Sauté, Steamer, Warmer, and Sterilizer",
        "category": "Kitchen & Dining",
        "rating": 4.7,
        "review_count": 45000,
        "availability": "in_stock",
    },
    "B06Y1YD5W7": {
        "name": "Instant Pot Duo Plus 9-in-1 Electric Pressure Cooker",
        "brand": "Instant Pot",
        "price": "$89.99",
        "description": "9-in-1 functionality: Pressure Cooker, Slow Cooker, Rice Cooker, Yogurt Maker, Egg Cooker, "
                       "Sauté, Steamer, Warmer, and Sterilizer",
        "category": "Kitchen & Dining",
        "rating": 4.7,
        "review_count": 45000,
        "availability": "in_stock",
    },
    "B08N5WRWNW": {
        "name": "Echo Dot (4th Gen) - Smart speaker with Alexa",
        "brand": "Amazon",
        "price": "$49.99",
        "description": "Meet the all-new Echo Dot - Our most popular smart speaker with a fabric design.",
        "category": "Electronics",
        "rating": 4.6,
        "review_count": 200000,
        "availability": "in_stock",
    },
    "B07PXGQC1Q": {
        "name": "Apple AirPods (2nd Generation)",
        "brand": "Apple",
        "price": "$129.00",
        "description": "AirPods with Charging Case: More than 24 hours of listening time",
        "category": "Electronics",
        "rating": 4.5,
        "review_count": 100000,
        "availability": "in_stock",
    },
    # eBay
    "357000764394": {
        "name": "Rolex Air King - Date Oyster Perpetual Gents Vintage Watch Ref 5700/1500, 34mm",
        "brand": "Rolex",
        "price": "$2,850.00",
        "description": "Vintage Rolex Air King Date Oyster Perpetual watch in excellent condition",
        "category": "Watches",
        "availability": "in_stock",
    },
    "405368894916": {
        "name": "ROLEX Military Vintage Watch Vietnam War Hand-Rolled",
        "brand": "Rolex",
        "price": "$3,200.00",
        "description": "Rare military vintage Rolex from Vietnam War era",
        "category": "Watches",
        "availability": "in_stock",
    },
    "124336167607": {
        "name": "Rolex Oyster Perpetual Superlative Chronometer Vintage Watch - Very Rare",
        "brand": "Rolex",
        "price": "$4,500.00",
        "description": "Very rare vintage Rolex Oyster Perpetual with original dial",
        "category": "Watches",
        "availability": "in_stock",
    },
    "225753748945": {
        "name": "Vintage Rolex Mens WATCH DIAL, Hour hand",
        "brand": "Rolex",
        "price": "$125.00",
        "description": "Authentic vintage Rolex watch dial and hour hand",
        "category": "Watch Parts",
        "availability": "in_stock",
    },
    # Etsy
    "1234567890": {
        "name": "Handmade Sterling Silver Necklace with Natural Stone Pendant",
        "brand": "Artisan Crafted",
        "price": "$48.99",
        "description": "Beautiful handcrafted sterling silver necklace featuring a natural stone pendant. "
                       "Each piece is unique and made with love.",
        "category": "Jewelry",
        "rating": 4.9,
        "review_count": 127,
        "availability": "in_stock",
    },
    "1445789123": {
        "name": "Custom Wedding Invitation Set - Rustic Floral Design",
        "brand": "Paper & Pretty",
        "price": "$85.00",
        "description": "Elegant custom wedding invitations with rustic floral design. "
                       "Includes invitations, RSVP cards, and thank you notes.",
        "category": "Wedding & Party",
        "rating": 4.8,
        "review_count": 89,
        "availability": "in_stock",
    },
    "1567891234": {
        "name": "Vintage Leather Journal with Hand-Stitched Binding",
        "brand": "Leather & Quill",
        "price": "$32.50",
        "description": "Authentic vintage-style leather journal with hand-stitched binding. "
                       "Perfect for writing, sketching, or as a gift.",
        "category": "Books & Journals",
        "rating": 4.7,
        "review_count": 203,
        "availability": "in_stock",
    },
    "1891234567": {
        "name": "Macrame Wall Hanging - Boho Home Decor",
        "brand": "Boho Dreams",
        "price": "$42.00",
        "description": "Beautiful macrame wall hanging to add bohemian charm to any room. "
                       "Made with natural cotton rope.",
        "category": "Home & Living",
        "rating": 4.6,
        "review_count": 156,
        "availability": "in_stock",
    },
    "1345678912": {
        "name": "Personalized Dog Collar with Name Engraving",
        "brand": "Pet Love Co",
        "price": "$29.99",
        "description": "Custom leather dog collar with personalized name engraving. "
                       "Available in multiple colors and sizes.",
        "category": "Pet Supplies",
        "rating": 4.9,
        "review_count": 312,
        "availability": "in_stock",
    },
    "1708567730": {
        "name": "Lily of the Valley glass can tumbler, May birthday gift, wood burned, glass straw, "
                "flower glass, Botanical Tumbler Cup",
        "brand": "Custom Print Shop",
        "price": "$19.95",
        "description": "Glass can tumbler with wood burned lily of the valley design. Includes glass straw. "
                       "Perfect May birthday gift with botanical flower theme on standard glassware.",
        "category": "Drinkware",
        "rating": 4.8,
        "review_count": 47,
        "availability": "in_stock",
    },
    # Walmart
    "567891234": {
        "name": 'Samsung 55" 4K Smart TV',
        "brand": "Samsung",
        "price": "$449.99",
        "description": "55-inch 4K UHD Smart TV with HDR and built-in streaming apps",
        "category": "Electronics",
        "rating": 4.5,
        "review_count": 1250,
        "availability": "in_stock",
    },
    # Target
    "54321098": {
        "name": "Target Goodfellow & Co. T-Shirt",
        "brand": "Goodfellow & Co.",
        "price": "$12.99",
        "description": "Men's short sleeve crew neck t-shirt in various colors",
        "category": "Clothing",
        "rating": 4.3,
        "review_count": 892,
        "availability": "in_stock",
    },
    # Best Buy
    "6539232": {
        "name": "Apple iPhone 15 Pro",
        "brand": "Apple",
        "price": "$999.99",
        "description": "iPhone 15 Pro with A17 Pro chip, ProCamera system, and titanium design",
        "category": "Electronics",
        "rating": 4.7,
        "review_count": 2341,
        "availability": "in_stock",
    },
    # AliExpress
    "1005004567890": {
        "name": "Wireless Bluetooth Earbuds",
        "brand": "Generic",
        "price": "$15.99",
        "description": "Wireless earbuds with charging case and noise cancellation",
        "category": "Electronics",
        "rating": 4.1,
        "review_count": 567,
        "availability": "in_stock",
    },
    # Shopify (product handles)
    "organic-cotton-tshirt": {
        "name": "Organic Cotton T-Shirt",
        "brand": "Eco Fashion Co.",
        "price": "$34.99",
        "description": "Sustainably made organic cotton t-shirt with eco-friendly dyes",
        "category": "Clothing",
        "rating": 4.6,
        "review_count": 203,
        "availability": "in_stock",
    },
}


def get_known_product(product_id):
    return KNOWN_PRODUCTS.get(product_id)

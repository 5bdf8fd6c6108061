SEED_PROFILES: list[dict] = [
    {
        "name": "Alex",
        "age": 27,
        "gender": "male",
        "bio": "Love hiking, coffee, and spontaneous adventures!",
        "photos": ["https://randomuser.me/api/portraits/men/32.jpg"],
        "interests": ["Hiking", "Coffee", "Travel", "Photography", "Rock Climbing"],
        "looking_for": "Someone adventurous who loves the outdoors",
        "hobbies": ["Weekend camping trips", "Trying new coffee shops", "Photography walks"],
        "job": "Software Engineer",
        "education": "Computer Science Degree",
        "location": "San Francisco",
        "location_data": {"type": "Point", "coordinates": [-122.4194, 37.7749]},
    },
    {
        "name": "Taylor",
        "age": 25,
        "gender": "female",
        "bio": "Designer. Dog lover. Looking for someone to share memes with.",
        "photos": ["https://randomuser.me/api/portraits/women/44.jpg"],
        "interests": ["Design", "Dogs", "Memes", "Art", "Netflix"],
        "looking_for": "Someone creative and funny",
        "hobbies": ["Sketching", "Dog walking", "Binge-watching shows", "Crafting"],
        "job": "UI/UX Designer",
        "education": "Design School",
        "location": "New York",
        "location_data": {"type": "Point", "coordinates": [-74.006, 40.7128]},
    },
    {
        "name": "Jordan",
        "age": 29,
        "gender": "male",
        "bio": "Foodie, traveler, and music enthusiast.",
        "photos": ["https://randomuser.me/api/portraits/men/65.jpg"],
        "interests": ["Cooking", "Travel", "Music", "Wine", "Cuisine"],
        "looking_for": "Someone who appreciates good food and music",
        "hobbies": ["Cooking new recipes", "Concert going", "Wine tasting", "Exploring restaurants"],
        "job": "Chef",
        "education": "Culinary Arts",
        "location": "Los Angeles",
        "location_data": {"type": "Point", "coordinates": [-118.2437, 34.0522]},
    },
    {
        "name": "Morgan",
        "age": 26,
        "gender": "female",
        "bio": "Bookworm. Yoga every morning. Let's chat!",
        "photos": ["https://randomuser.me/api/portraits/women/68.jpg"],
        "interests": ["Reading", "Yoga", "Meditation", "Writing", "Tea"],
        "looking_for": "Someone intellectual and mindful",
        "hobbies": ["Morning yoga", "Book club", "Journaling", "Tea ceremonies"],
        "job": "Librarian",
        "education": "English Literature",
        "location": "Boston",
        "location_data": {"type": "Point", "coordinates": [-71.0589, 42.3601]},
    },
    {
        "name": "Casey",
        "age": 28,
        "gender": "female",
        "bio": "Photographer. Coffee addict. Adventure seeker.",
        "photos": ["https://randomuser.me/api/portraits/women/22.jpg"],
        "interests": ["Photography", "Coffee", "Adventure", "Nature", "Art"],
        "looking_for": "Someone who loves exploring and creativity",
        "hobbies": ["Street photography", "Coffee brewing", "Hiking", "Art galleries"],
        "job": "Professional Photographer",
        "education": "Fine Arts",
        "location": "Seattle",
        "location_data": {"type": "Point", "coordinates": [-122.3321, 47.6062]},
    },
    {
        "name": "Riley",
        "age": 24,
        "gender": "male",
        "bio": "Artist. Cat person. Love trying new restaurants.",
        "photos": ["https://randomuser.me/api/portraits/men/45.jpg"],
        "interests": ["Art", "Cats", "Food", "Painting", "Museums"],
        "looking_for": "Someone artistic and food-loving",
        "hobbies": ["Painting", "Cat sitting", "Restaurant hopping", "Gallery visits"],
        "job": "Freelance Artist",
        "education": "Art School",
        "location": "Portland",
        "location_data": {"type": "Point", "coordinates": [-122.6765, 45.5152]},
    },
]

"""Example usage of the typed_models library."""

import json

from typed_models import ID, REF, STRING, Model

# Define two models; Post.author refers to a User row by id
User = Model("User", {
    "id": ID(),
    "username": STRING(),
    "bio": STRING("No bio provided."),
    "password": STRING(),
})

Post = Model("Post", {
    "id": ID(),
    "title": STRING(),
    "content": STRING("Empty content."),
    "author": REF(0, User),
})

john = User.create({"username": "John", "password": "12345"})
jane = User.create({
    "username": "Jane",
    "password": "67890",
    "bio": "Hi, I'm Jane. I'm a programmer and blogger.",
})

for i in range(20):
    author = john if i % 2 == 0 else jane
    Post.create({
        "title": f"Post {i}",
        "content": f"This is post {i}.",
        "author": author.id,
    })

print(f"{User.count} users, {Post.count} posts")

janes_posts = Post.where(lambda post: post.author().id == jane.id)
print(f"Jane wrote {janes_posts.count()} posts, first: {janes_posts.first().title}")

print("\nFirst three posts by title:")
for post in Post.query().order("title").limit(3):
    print(f"  [{post.id}] {post.title} by {post.author().username}")

# Round trip through JSON; the reference target is supplied by name
user_data = json.loads(json.dumps(User.to_json()))
post_data = json.loads(json.dumps(Post.to_json()))

User2 = Model.from_json(user_data)
Post2 = Model.from_json(post_data, {"User": User2})

assert Post2.get(2).author().username == "Jane"
print("\nRound trip OK:", Post2)

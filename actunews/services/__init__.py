# Services package.
#
# One module per aggregate, each a set of async functions taking an
# AsyncSession first:
#
#   post_service      listing (filters, pagination, cache), CRUD for Post
#   category_service  CRUD for Category
#   tag_service       listing / creation for Tag
#   comment_service   comment creation on a Post
#   user_service      listing, detail and registration for User
#
# Creates go through the entity lifecycle pipeline, which commits the new
# row itself.  Reads and updates flush only; the ``get_db`` dependency owns
# the commit for those.
